"""Calculation and validation engine abstract base class."""
from __future__ import annotations
from abc import ABC, abstractmethod

from .models.document import Document


class DocumentProcessor(ABC):
    """External engine that computes totals and enforces tax rules.

    Errors raised by an implementation reach the caller unmodified.
    """

    @abstractmethod
    def calculate(self, document: Document) -> Document:
        """Populate computed totals and return the document."""
        ...

    @abstractmethod
    def validate(self, document: Document) -> None:
        """Raise if the document breaks a referential or tax rule."""
        ...

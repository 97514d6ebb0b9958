from .base import DocumentBackend
from .pypdfium2_engine import Pypdfium2Backend, open_pdf_document

__all__ = ["DocumentBackend", "Pypdfium2Backend", "open_pdf_document"]

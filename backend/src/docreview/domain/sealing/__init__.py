from .ports import ReviewerNames, SealedDocument, SealingError, SealingPort

__all__ = ["ReviewerNames", "SealedDocument", "SealingError", "SealingPort"]

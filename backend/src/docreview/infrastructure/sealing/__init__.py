from .pdf_stamper import PdfSealingService, generate_verification_code, sealed_key_for, stamp_pdf

__all__ = ["PdfSealingService", "generate_verification_code", "sealed_key_for", "stamp_pdf"]

from .acquisition import AcquisitionResult, ReferenceAcquisition

__all__ = ["AcquisitionResult", "ReferenceAcquisition"]

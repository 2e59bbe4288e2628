from .iam import IamTokenClient

__all__ = ["IamTokenClient"]

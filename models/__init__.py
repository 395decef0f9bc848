from models.lender import Lender, LenderProduct

__all__ = [
    "Lender",
    "LenderProduct",
]

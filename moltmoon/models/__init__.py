from .intent import LaunchPreparation, LaunchResult, TransactionIntent
from .launch import LaunchParams, Socials
from .market import MarketDetails, QuoteResponse, Token

__all__ = [
    "LaunchPreparation",
    "LaunchResult",
    "TransactionIntent",
    "LaunchParams",
    "Socials",
    "MarketDetails",
    "QuoteResponse",
    "Token",
]

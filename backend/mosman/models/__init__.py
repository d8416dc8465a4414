"""
SQLAlchemy models for the Mosman finance API.

- Pockets (funds)
- Donation / expense categories
- Donations and expenses with their line items
- User profiles (role + active flag)
"""
from mosman.models.pocket import Pocket
from mosman.models.category import DonationCategory, ExpenseCategory
from mosman.models.donation import Donation, DonationItem, PaymentMethod
from mosman.models.expense import Expense, ExpenseItem, ExpenseStatus
from mosman.models.user_profile import UserProfile, UserRole

__all__ = [
    "Pocket",
    "DonationCategory",
    "ExpenseCategory",
    "Donation",
    "DonationItem",
    "PaymentMethod",
    "Expense",
    "ExpenseItem",
    "ExpenseStatus",
    "UserProfile",
    "UserRole",
]

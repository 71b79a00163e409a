"""
Keyword taxonomies for income types, bills versus shopping, and transfers.

All checks are ordered substring searches over lower-cased descriptors; the
first matching category wins so results stay deterministic and explainable.
"""

from typing import Dict, List, Optional

from cadence.models.income import IncomeType

# Checked in declaration order, first hit wins
INCOME_KEYWORDS: Dict[IncomeType, List[str]] = {
    IncomeType.payroll: [
        "payroll", "salary", "wages", "direct dep", "dir dep", "dd ", "paycheck",
        "pay check", "biweekly", "bi-weekly", "semi-monthly", "employer",
        "ach credit", "reg salary", "net pay", "gross pay",
    ],
    IncomeType.government: [
        "ssa ", "ssi ", "ssdi", "social sec", "irs treas", "tax refund", "tax ref",
        "unemployment", "ui benefit", "ebt", "snap", "tanf", "wic ",
        "veterans", "va benefit", "disability", "stimulus", "economic impact",
    ],
    IncomeType.retirement: [
        "pension", "retirement", "401k", "401(k)", "ira dist", "roth",
        "annuity", "sep ira", "simple ira", "keogh", "defined benefit",
    ],
    IncomeType.self_employment: [
        "stripe", "square", "paypal", "invoice", "client", "freelance",
        "consulting", "contract", "gig", "uber", "lyft", "doordash",
        "instacart", "fiverr", "upwork", "etsy", "shopify", "merchant",
    ],
    IncomeType.investment: [
        "dividend", "interest", "capital gain", "distribution", "yield",
        "brokerage", "fidelity", "vanguard", "schwab", "ameritrade",
        "robinhood", "stock", "bond", "mutual fund",
    ],
    IncomeType.rental: [
        "rent", "tenant", "lease", "property", "landlord", "rental income",
        "airbnb", "vrbo",
    ],
    IncomeType.refund: [
        "refund", "return", "cashback", "cash back", "rebate", "credit",
        "reimburse", "chargeback", "reversal",
    ],
    IncomeType.transfer: [
        "venmo", "zelle", "transfer", "xfer", "from savings", "from checking",
        "internal", "p2p", "person to person", "mobile deposit",
    ],
}

# Shopping merchants that are frequent but are not bills
EXCLUDED_MERCHANTS = [
    "walmart", "target", "costco", "sams club", "aldi", "kroger", "heb",
    "hobby lobby", "michaels", "joann", "dollar tree", "dollar general",
    "home depot", "lowes", "menards", "ace hardware",
    "amazon", "ebay", "etsy",
    "mcdonalds", "burger king", "wendys", "chick fil a", "taco bell",
    "starbucks", "dunkin", "sonic", "whataburger", "chipotle",
    "gas", "shell", "exxon", "chevron", "bp ", "quiktrip", "racetrac",
    "walgreens", "cvs", "rite aid",
    "braums", "sonic drive", "dairy queen",
    "publix", "safeway", "albertsons", "food lion", "piggly wiggly",
    "whole foods", "trader joes", "sprouts",
    "uber", "lyft", "doordash", "grubhub", "instacart",
]

EXCLUDED_CATEGORIES = [
    "FOOD_AND_DRINK",
    "MERCHANDISE",
    "SHOPPING",
    "GENERAL_MERCHANDISE",
    "SUPERMARKETS_AND_GROCERIES",
    "GAS_STATIONS",
]

# Payment processors and gig platforms whose deposits are real income
LEGITIMATE_INCOME_MERCHANTS = [
    "stripe", "square", "paypal", "venmo business", "shopify", "etsy",
    "uber", "lyft", "doordash", "instacart", "grubhub", "fiverr", "upwork",
    "amazon flex", "postmates", "taskrabbit", "rover",
]

TRANSFER_CATEGORIES = [
    "TRANSFER_IN",
    "TRANSFER_OUT",
]

TRANSFER_EXACT_NAMES = [
    "transfer",
    "xfer",
]

TRANSFER_PHRASES = [
    "transfer to",
    "transfer from",
    "online transfer",
    "mobile transfer",
    "internal transfer",
    "bank transfer",
    "xfer to",
    "xfer from",
    "from checking",
    "to checking",
    "from savings",
    "to savings",
    "sweep",
    "move money",
]

# Positive-amount descriptors that still mean money in (inverted-sign feeds)
INCOME_LIKE_KEYWORDS = [
    "payroll", "salary", "direct dep", "dir dep", "paycheck", "net pay",
    "deposit", "irs treas", "ssa ", "pension", "dividend",
]

BILL_TYPE_KEYWORDS: Dict[str, List[str]] = {
    "subscription": [
        "netflix", "spotify", "hulu", "disney", "hbo", "youtube", "apple com",
        "icloud", "prime", "adobe", "microsoft", "google storage", "patreon",
        "gym", "fitness", "membership", "subscription",
    ],
    "utility": [
        "electric", "power", "energy", "water", "sewer",
        "internet", "comcast", "xfinity", "spectrum", "att ", "verizon",
        "t mobile", "tmobile", "phone", "wireless", "utility", "utilities",
    ],
    "loan": [
        "loan", "mortgage", "auto pay", "navient", "nelnet", "sallie mae",
        "student", "lending", "finance", "credit card", "card payment",
    ],
    "insurance": [
        "insurance", "geico", "progressive", "state farm", "allstate",
        "liberty mutual", "aetna", "cigna", "humana", "blue cross",
    ],
    "rent": [
        "rent", "apartment", "property management", "landlord", "hoa",
    ],
}


def _lower(value: Optional[str]) -> str:
    return (value or "").lower().strip()


def classify_income_type(name: str) -> IncomeType:
    """First taxonomy category whose keyword list hits the descriptor."""
    name_lower = _lower(name)
    for income_type, keywords in INCOME_KEYWORDS.items():
        for keyword in keywords:
            if keyword in name_lower:
                return income_type
    return IncomeType.other


def is_legitimate_income_merchant(name: str) -> bool:
    name_lower = _lower(name)
    return any(merchant in name_lower for merchant in LEGITIMATE_INCOME_MERCHANTS)


def is_excluded_merchant(name: str, category: Optional[str] = None) -> bool:
    """Shopping denylist check by merchant name or category."""
    name_lower = _lower(name)
    for excluded in EXCLUDED_MERCHANTS:
        if excluded in name_lower:
            return True
    return bool(category and category.upper() in EXCLUDED_CATEGORIES)


def is_excluded_from_bills(name: str, category: Optional[str], amount: float) -> bool:
    """
    Whether a transaction should be kept out of bill detection.

    The legitimate-income allowlist is checked first: a money-in deposit from a
    gig platform is never excluded, even though the same merchant's purchases
    are shopping.
    """
    if amount < 0 and is_legitimate_income_merchant(name):
        return False
    return is_excluded_merchant(name, category)


def is_transfer(name: str, category: Optional[str] = None) -> bool:
    """Internal money movement by category code or transfer phrasing."""
    if category and category.upper() in TRANSFER_CATEGORIES:
        return True
    name_lower = _lower(name)
    if name_lower in TRANSFER_EXACT_NAMES:
        return True
    return any(phrase in name_lower for phrase in TRANSFER_PHRASES)


def is_income_transaction(txn) -> bool:
    """
    Net decision: is this transaction income?

    1. An explicit user flag wins in either direction.
    2. Allowlisted income merchant with money in -> income.
    3. Transfer pattern -> not income.
    4. Money in with no contrary signal -> income.
    5. Money out with income-like keywords (inverted-sign sources) -> income.
    6. Otherwise not income.
    """
    if txn.is_income is not None:
        return bool(txn.is_income)

    name = txn.descriptor
    amount = float(txn.amount)

    if amount < 0 and is_legitimate_income_merchant(name):
        return True
    if is_transfer(name, txn.category):
        return False
    if amount < 0:
        return True
    if amount > 0:
        name_lower = _lower(name)
        return any(keyword in name_lower for keyword in INCOME_LIKE_KEYWORDS)
    return False


def classify_bill_type(name: str, is_income: bool = False) -> str:
    """Semantic bill type used when surfacing a pattern."""
    if is_income:
        return "income"
    name_lower = _lower(name)
    for bill_type, keywords in BILL_TYPE_KEYWORDS.items():
        if any(keyword in name_lower for keyword in keywords):
            return bill_type
    return "bill"

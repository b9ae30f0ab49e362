"""Application-wide constants."""

# Job statuses
JOB_STATUS_PENDING = "pending"
JOB_STATUS_COMPLETED = "completed"
JOB_STATUS_CANCELLED = "cancelled"
JOB_STATUSES = [JOB_STATUS_PENDING, JOB_STATUS_COMPLETED, JOB_STATUS_CANCELLED]

# Labels written by older app versions, mapped onto the canonical status
LEGACY_JOB_STATUS_LABELS = {
    "PENDING": JOB_STATUS_PENDING,
    "COMPLETED": JOB_STATUS_COMPLETED,
    "CANCELLED": JOB_STATUS_CANCELLED,
    "待處理": JOB_STATUS_PENDING,
    "已完工": JOB_STATUS_COMPLETED,
    "流案": JOB_STATUS_CANCELLED,
}

# Service items
SERVICE_TANK = "tank_cleaning"
SERVICE_PIPE = "pipe_cleaning"
SERVICE_ITEMS = {
    SERVICE_TANK: "Water tank cleaning",
    SERVICE_PIPE: "Pipe cleaning",
}

# Expense categories (anything else is reported as "other")
EXPENSE_CATEGORIES = [
    "insurance",
    "utilities",
    "phone",
    "fuel",
    "consumables",
    "equipment",
    "other",
]
FUEL_CATEGORY = "fuel"

# Asset statuses
ASSET_RETIRED = "retired"

# Consumables tracked by stock logs
CONSUMABLE_CITRIC = "citric"
CONSUMABLE_CHEMICAL = "chemical"
CONSUMABLE_TYPES = [CONSUMABLE_CITRIC, CONSUMABLE_CHEMICAL]

# Customers
CUSTOMER_CODE_PREFIX = "C"
CUSTOMER_CODE_DIGITS = 7

# ── Roles & capabilities ────────────────────────────────────────
WRITE_ROLES = ["BOSS", "MANAGER"]
VIEW_ROLES = ["BOSS", "MANAGER", "STAFF"]
SYSTEM_ROLE = "SYSTEM"

# ── Audit log ───────────────────────────────────────────────────
AUDIT_ACTIONS = [
    "CREATE",
    "UPDATE",
    "DELETE",
    "LOGIN",
    "LOGOUT",
    "IMPORT",
    "EXPORT",
    "RESTORE",
]

AUDIT_MODULES = [
    "AUTH",
    "CUSTOMER",
    "JOB",
    "EXPENSE",
    "ASSET",
    "STOCK",
    "SETTINGS",
    "SYSTEM",
]

CIRCULAR_PLACEHOLDER = "[Circular]"
COMPLEX_PLACEHOLDER = "[Complex Object]"

# Starter equipment list offered on first-time setup
DEFAULT_ASSET_NAMES = [
    "High-pressure washer",
    "Submersible pump",
    "Wet/dry vacuum",
    "Industrial extension reel",
    "Work light",
    "Telescopic tank brush",
    "Hand tool set",
    "Rubber mallet",
    "Aerator removal tool",
    "Folding tub",
    "Safety helmet",
    "Safety harness & rope",
]

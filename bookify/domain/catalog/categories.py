"""Fixed service categories providers register under"""

SERVICE_CATEGORIES = [
    {"id": "dental", "name": "Dental & Orthodontics"},
    {"id": "fitness", "name": "Health & Fitness"},
    {"id": "professional", "name": "Professional Services"},
    {"id": "barber", "name": "Barbershop"},
    {"id": "beauty", "name": "Beauty Salon"},
    {"id": "massage", "name": "Massage Therapy"},
    {"id": "other", "name": "Other"},
]

CATEGORY_IDS = {c["id"] for c in SERVICE_CATEGORIES}


def get_category(category_id: str):
    return next((c for c in SERVICE_CATEGORIES if c["id"] == category_id), None)


def validate_category(category_id: str) -> str:
    category_id = (category_id or "").strip().lower()
    if category_id not in CATEGORY_IDS:
        raise ValueError(f"Unknown service category. Choose one of: {', '.join(sorted(CATEGORY_IDS))}")
    return category_id

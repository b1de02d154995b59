"""
Store layout model: coarse categories and the major-section scaffold.

The scaffold is a generic walk through a big-box or grocery store, entry
to checkout. It is a heuristic for checklist ordering, not a map of any
real store. A section's rank is its position in MAJOR_SECTION_SCAFFOLD.
"""

from dataclasses import dataclass
from typing import List, Dict, Tuple


@dataclass(frozen=True)
class MajorSectionSpec:
    id: str
    label: str
    subsections: Tuple[str, ...]


# =============================================================================
# Coarse Categories
# =============================================================================

CATEGORY_ORDER: List[str] = [
    "produce",
    "bakery",
    "deli",
    "meat_seafood",
    "dairy_eggs",
    "frozen",
    "pantry",
    "snacks",
    "beverages",
    "household",
    "personal_care",
    "pet",
    "other",
]

CATEGORY_LABELS: Dict[str, str] = {
    "produce": "Produce",
    "bakery": "Bakery",
    "deli": "Deli",
    "meat_seafood": "Meat & Seafood",
    "dairy_eggs": "Dairy & Eggs",
    "frozen": "Frozen",
    "pantry": "Pantry",
    "snacks": "Snacks",
    "beverages": "Beverages",
    "household": "Household",
    "personal_care": "Personal Care",
    "pet": "Pet",
    "other": "Other",
}

CATEGORY_RANK: Dict[str, int] = {category: rank for rank, category in enumerate(CATEGORY_ORDER)}


# =============================================================================
# Major Section Scaffold
# =============================================================================

MAJOR_SECTION_SCAFFOLD: List[MajorSectionSpec] = [
    MajorSectionSpec("entry_front_of_store", "Entry / Front of store", (
        "Seasonal / promos / endcaps",
        "Membership desk (warehouse clubs)",
        "Returns and customer service",
        "Pharmacy pickup window (drugstores, some groceries)",
        "Photo / print counter (drugstores)",
        "Optical (warehouse clubs, some big box)",
        "Hearing aid center (warehouse clubs)",
        "Carts / baskets",
        "Grab and go coolers",
        "Flowers and plants (some stores)",
        "Travel and impulse items",
    )),
    MajorSectionSpec("produce", "Produce", (
        "Organic produce",
        "Conventional produce",
        "Fresh herbs",
        "Packaged salads / cut fruit",
        "Bulk produce (potatoes, onions) and mushrooms",
    )),
    MajorSectionSpec("bakery", "Bakery", (
        "Fresh bread",
        "Pastries and desserts",
        "Tortillas / pita / wraps",
        "Custom cakes / special orders",
        "In store bakery production area (some stores)",
    )),
    MajorSectionSpec("prepared_foods_and_deli_cluster", "Prepared foods and deli cluster", (
        "Prepared foods (hot bar, salad bar, soups)",
        "Pizza / sandwiches (where offered)",
        "Deli counter (sliced meats)",
        "Rotisserie chicken",
        "Ready to eat packaged meals",
        "Charcuterie and antipasti",
    )),
    MajorSectionSpec("cheese_and_specialty_dairy", "Cheese and specialty dairy", (
        "Specialty cheese case",
        "Packaged cheese",
        "Yogurt / cultured dairy",
        "Butter and cream",
        "Eggs (sometimes nearby)",
    )),
    MajorSectionSpec("meat_and_poultry", "Meat and poultry", (
        "Service counter (butcher)",
        "Packaged meats",
        "Sausages and marinated items",
        "Broth / stocks nearby (sometimes)",
    )),
    MajorSectionSpec("seafood", "Seafood", (
        "Fresh fish counter",
        "Shellfish",
        "Smoked and packaged seafood",
    )),
    MajorSectionSpec("perimeter_refrigerated_wall", "Perimeter refrigerated wall", (
        "Milk and alt milks",
        "Refrigerated breakfast meats",
        "Fresh pasta",
        "Refrigerated sauces, pesto, hummus, dips",
        "Tofu / tempeh / plant based proteins",
        "Refrigerated ready meals",
    )),
    MajorSectionSpec("frozen", "Frozen", (
        "Ice cream and novelties",
        "Frozen fruit and vegetables",
        "Frozen meals",
        "Frozen pizza",
        "Frozen breakfast",
        "Frozen meat and seafood",
        "Ice",
    )),
    MajorSectionSpec("alcohol", "Alcohol (varies by state and store)", (
        "Beer",
        "Wine",
        "Spirits (where legal)",
        "Mixers (sometimes)",
    )),
    MajorSectionSpec("dry_grocery_aisles", "Dry grocery aisles", (
        "Pasta, grains, rice",
        "Canned goods",
        "Sauces and condiments",
        "International foods",
        "Oils and vinegars",
        "Spices and seasonings",
        "Baking supplies",
        "Cereal and breakfast",
        "Coffee and tea",
        "Crackers and shelf stable breads",
        "Snacks",
        "Candy",
    )),
    MajorSectionSpec("bulk_foods", "Bulk foods (if present)", (
        "Bulk grains, beans, pasta",
        "Bulk nuts and dried fruit",
        "Bulk candy",
        "Bulk spices / coffee (some stores)",
    )),
    MajorSectionSpec("beverages", "Beverages (often spans multiple aisles in larger stores)", (
        "Water and sparkling water",
        "Soda",
        "Juice (shelf stable)",
        "Sports drinks and energy drinks",
        "Drink mixes and powdered beverages",
    )),
    MajorSectionSpec("health_and_wellness", "Health and wellness (grocery style)", (
        "Vitamins and supplements",
        "Sports nutrition",
        "First aid and OTC meds",
        "Feminine care",
        "Adult care (incontinence)",
    )),
    MajorSectionSpec("pharmacy", "Pharmacy (drugstores, some groceries and big box)", (
        "Prescription drop off and pickup",
        "Immunizations (where offered)",
        "Pharmacy waiting area",
        "Health screenings / clinic (some drugstores)",
    )),
    MajorSectionSpec("personal_care_and_beauty", "Personal care and beauty (especially drugstores)", (
        "Skincare",
        "Hair care",
        "Cosmetics",
        "Deodorant and shaving",
        "Oral care",
        "Fragrance",
        "Nail care",
    )),
    MajorSectionSpec("baby_and_family", "Baby and family", (
        "Diapers and wipes",
        "Baby food and formula",
        "Baby toiletries",
        "Kids health",
    )),
    MajorSectionSpec("household_and_cleaning", "Household and cleaning", (
        "Laundry",
        "Dish and surface cleaners",
        "Paper towels and toilet paper",
        "Trash bags",
        "Air fresheners",
        "Pest control",
        "Light bulbs and small home utility",
    )),
    MajorSectionSpec("pet", "Pet", (
        "Pet food",
        "Treats",
        "Litter and supplies",
    )),
    MajorSectionSpec("home_goods_and_seasonal", "Home goods and seasonal (big box and warehouse clubs)", (
        "Kitchen and small appliances",
        "Cookware and storage containers",
        "Bedding and bath",
        "Home decor",
        "Holiday and seasonal items",
        "Patio and garden (seasonal)",
        "Grills and outdoor cooking (seasonal)",
    )),
    MajorSectionSpec("office_and_school", "Office and school (drugstores and big box)", (
        "Stationery and office supplies",
        "School supplies",
        "Ink and paper (some stores)",
    )),
    MajorSectionSpec("electronics_and_media", "Electronics and media (big box, some drugstores)", (
        "Headphones and cables",
        "Small electronics and accessories",
        "Batteries (sometimes here, sometimes at checkout)",
        "Gift cards (often near checkout)",
    )),
    MajorSectionSpec("apparel", "Apparel (warehouse clubs and big box)", (
        "Basics (socks, underwear)",
        "Casual clothing",
        "Outerwear (seasonal)",
        "Shoes (some stores)",
    )),
    MajorSectionSpec("automotive", "Automotive (big box and warehouse clubs)", (
        "Motor oil and fluids",
        "Wiper blades",
        "Car accessories",
        "Tires and tire center (warehouse clubs)",
    )),
    MajorSectionSpec("sports_fitness_and_outdoors", "Sports, fitness, and outdoors (big box and warehouse clubs)", (
        "Fitness equipment and accessories",
        "Camping and outdoor gear",
        "Bikes (seasonal)",
    )),
    MajorSectionSpec("books_cards_and_party", "Books, cards, and party (drugstores, some groceries)", (
        "Greeting cards",
        "Gift wrap and bags",
        "Party supplies",
        "Small books and magazines",
    )),
    MajorSectionSpec("services_and_specialty_counters", "Services and specialty counters (varies)", (
        "Food court (warehouse clubs)",
        "Vision center (optical)",
        "Hearing aid center",
        "Travel services (some warehouse clubs)",
        "Money services (some stores)",
        "Key cutting (some big box)",
        "Coin counting (some groceries)",
    )),
    MajorSectionSpec("checkout_exit", "Checkout / exit", (
        "Registers / self checkout",
        "Impulse items",
        "Returns desk (sometimes near exit)",
        "Pickup lockers / online order pickup (some stores)",
    )),
]

MAJOR_SECTION_ORDER: List[str] = [section.id for section in MAJOR_SECTION_SCAFFOLD]
MAJOR_SECTION_RANK: Dict[str, int] = {section_id: rank for rank, section_id in enumerate(MAJOR_SECTION_ORDER)}
MAJOR_SECTION_LABELS: Dict[str, str] = {section.id: section.label for section in MAJOR_SECTION_SCAFFOLD}

# Coarse category to use when only the scaffold section is known
MAJOR_SECTION_TO_CATEGORY: Dict[str, str] = {
    "entry_front_of_store": "other",
    "produce": "produce",
    "bakery": "bakery",
    "prepared_foods_and_deli_cluster": "deli",
    "cheese_and_specialty_dairy": "dairy_eggs",
    "meat_and_poultry": "meat_seafood",
    "seafood": "meat_seafood",
    "perimeter_refrigerated_wall": "dairy_eggs",
    "frozen": "frozen",
    "alcohol": "beverages",
    "dry_grocery_aisles": "pantry",
    "bulk_foods": "pantry",
    "beverages": "beverages",
    "health_and_wellness": "personal_care",
    "pharmacy": "personal_care",
    "personal_care_and_beauty": "personal_care",
    "baby_and_family": "personal_care",
    "household_and_cleaning": "household",
    "pet": "pet",
    "home_goods_and_seasonal": "household",
    "office_and_school": "household",
    "electronics_and_media": "other",
    "apparel": "other",
    "automotive": "household",
    "sports_fitness_and_outdoors": "other",
    "books_cards_and_party": "other",
    "services_and_specialty_counters": "other",
    "checkout_exit": "snacks",
}


def build_prompt_scaffold(scaffold: List[MajorSectionSpec] = MAJOR_SECTION_SCAFFOLD) -> str:
    """Render the scaffold as a numbered outline for a vision-model prompt."""
    blocks = []
    for number, section in enumerate(scaffold, start=1):
        lines = [f"{number}. {section.label}"]
        lines.extend(f"   - {subsection}" for subsection in section.subsections)
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


MAJOR_SECTION_PROMPT_SCAFFOLD = build_prompt_scaffold()

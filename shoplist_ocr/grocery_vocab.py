"""
Grocery vocabulary and hand-curated lookup tables.

Everything in this module is data, not logic: the categorizer, the name
normalizer, the ordering engine and the vision mapper take these tables
as arguments so a deployment can swap in its own.

VOCABULARY rows are (canonical, category, subcategory, order_hint, synonyms).
The canonical spelling is what a matched item displays; every synonym is an
exact-match key and a fuzzy-search candidate. A term may belong to one entry
only (CategorizationIndex refuses duplicates).
"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Tuple


@dataclass(frozen=True)
class VocabEntry:
    """One vocabulary row."""
    canonical: str
    category: str
    subcategory: Optional[str]
    order_hint: Optional[int]
    synonyms: Tuple[str, ...] = field(default_factory=tuple)

    def terms(self) -> List[str]:
        """Canonical spelling first, then synonyms, all lowercase."""
        seen = []
        for term in (self.canonical, *self.synonyms):
            key = " ".join(term.lower().split())
            if key and key not in seen:
                seen.append(key)
        return seen


@dataclass(frozen=True)
class TokenRule:
    """Substring rule: any token inside the normalized name selects the category."""
    tokens: Tuple[str, ...]
    category_id: str
    subcategory_id: Optional[str] = None


# =============================================================================
# VOCABULARY (organized by coarse category)
# =============================================================================

_VOCABULARY_ROWS = [
    # PRODUCE - FRUIT
    ("apples", "produce", "fruit", 10, ["apple", "red apples", "green apples", "granny smith", "fuji apples"]),
    ("bananas", "produce", "fruit", 11, ["banana", "plantains"]),
    ("oranges", "produce", "fruit", 12, ["orange", "clementines", "mandarins", "tangerines", "cuties"]),
    ("lemons", "produce", "fruit", 13, ["lemon"]),
    ("limes", "produce", "fruit", 14, ["lime"]),
    ("strawberries", "produce", "fruit", 15, ["strawberry"]),
    ("blueberries", "produce", "fruit", 16, ["blueberry"]),
    ("raspberries", "produce", "fruit", 17, ["raspberry"]),
    ("grapes", "produce", "fruit", 18, ["grape", "red grapes", "green grapes"]),
    ("avocados", "produce", "fruit", 19, ["avocado"]),
    ("pears", "produce", "fruit", 20, ["pear"]),
    ("peaches", "produce", "fruit", 21, ["peach", "nectarines"]),
    ("pineapple", "produce", "fruit", 22, ["pineapples"]),
    ("mango", "produce", "fruit", 23, ["mangoes", "mangos"]),
    ("watermelon", "produce", "fruit", 24, ["cantaloupe", "honeydew", "melon"]),

    # PRODUCE - VEGETABLES
    ("onions", "produce", "vegetables", 30, ["onion", "yellow onion", "red onion", "white onion", "shallots"]),
    ("green onions", "produce", "vegetables", 31, ["green onion", "scallions"]),
    ("garlic", "produce", "vegetables", 32, ["garlic cloves"]),
    ("potatoes", "produce", "vegetables", 33, ["potato", "russet potatoes", "red potatoes", "yukon gold"]),
    ("sweet potatoes", "produce", "vegetables", 34, ["sweet potato", "yams"]),
    ("carrots", "produce", "vegetables", 35, ["carrot", "baby carrots"]),
    ("celery", "produce", "vegetables", 36, []),
    ("tomatoes", "produce", "vegetables", 37, ["tomato", "cherry tomatoes", "roma tomatoes"]),
    ("bell peppers", "produce", "vegetables", 38, ["bell pepper", "red pepper", "green pepper"]),
    ("jalapenos", "produce", "vegetables", 39, ["jalapeno"]),
    ("cucumbers", "produce", "vegetables", 40, ["cucumber"]),
    ("broccoli", "produce", "vegetables", 41, ["broccoli florets"]),
    ("cauliflower", "produce", "vegetables", 42, []),
    ("zucchini", "produce", "vegetables", 43, ["squash", "yellow squash"]),
    ("mushrooms", "produce", "vegetables", 44, ["mushroom", "cremini", "portobello"]),
    ("corn", "produce", "vegetables", 45, ["corn on the cob", "sweet corn"]),
    ("green beans", "produce", "vegetables", 46, ["string beans"]),
    ("asparagus", "produce", "vegetables", 47, []),
    ("eggplant", "produce", "vegetables", 48, []),
    ("ginger", "produce", "vegetables", 49, ["fresh ginger"]),

    # PRODUCE - SALAD GREENS & HERBS
    ("lettuce", "produce", "salad_greens", 60, ["romaine", "romaine lettuce", "iceberg lettuce"]),
    ("spinach", "produce", "salad_greens", 61, ["baby spinach"]),
    ("kale", "produce", "salad_greens", 62, []),
    ("arugula", "produce", "salad_greens", 63, []),
    ("mixed greens", "produce", "salad_greens", 64, ["spring mix", "salad mix", "bagged salad"]),
    ("cilantro", "produce", "herbs", 70, []),
    ("parsley", "produce", "herbs", 71, []),
    ("basil", "produce", "herbs", 72, ["fresh basil"]),
    ("mint", "produce", "herbs", 73, []),
    ("dill", "produce", "herbs", 74, []),

    # BAKERY
    ("bread", "bakery", "bread", 10, ["white bread", "wheat bread", "whole wheat bread", "sourdough", "rye bread"]),
    ("bagels", "bakery", "bread", 11, ["bagel"]),
    ("english muffins", "bakery", "bread", 12, ["english muffin"]),
    ("buns", "bakery", "bread", 13, ["hamburger buns", "hot dog buns", "rolls", "dinner rolls"]),
    ("tortillas", "bakery", "tortillas", 20, ["tortilla", "flour tortillas", "corn tortillas", "wraps"]),
    ("pita", "bakery", "tortillas", 21, ["pita bread", "naan", "flatbread"]),
    ("croissants", "bakery", "pastries", 30, ["croissant"]),
    ("muffins", "bakery", "pastries", 31, ["muffin"]),
    ("donuts", "bakery", "pastries", 32, ["doughnuts", "donut"]),
    ("cake", "bakery", "pastries", 33, ["birthday cake", "cupcakes"]),

    # DELI
    ("deli turkey", "deli", "deli_meat", 10, ["sliced turkey", "turkey slices"]),
    ("deli ham", "deli", "deli_meat", 11, ["sliced ham", "ham slices"]),
    ("salami", "deli", "deli_meat", 12, ["pepperoni", "prosciutto"]),
    ("lunch meat", "deli", "deli_meat", 13, ["cold cuts", "deli meat"]),
    ("rotisserie chicken", "deli", "prepared", 20, []),
    ("potato salad", "deli", "prepared", 21, ["coleslaw", "pasta salad"]),

    # MEAT & SEAFOOD
    ("chicken breast", "meat_seafood", "poultry", 10, ["chicken breasts", "boneless chicken"]),
    ("chicken thighs", "meat_seafood", "poultry", 11, ["chicken thigh"]),
    ("chicken wings", "meat_seafood", "poultry", 12, ["wings"]),
    ("whole chicken", "meat_seafood", "poultry", 13, []),
    ("ground turkey", "meat_seafood", "poultry", 14, ["turkey breast"]),
    ("ground beef", "meat_seafood", "beef", 20, ["hamburger meat", "lean ground beef"]),
    ("steak", "meat_seafood", "beef", 21, ["ribeye", "sirloin", "flank steak"]),
    ("roast", "meat_seafood", "beef", 22, ["pot roast", "chuck roast", "brisket"]),
    ("bacon", "meat_seafood", "pork", 30, ["turkey bacon"]),
    ("sausage", "meat_seafood", "pork", 31, ["italian sausage", "breakfast sausage", "bratwurst"]),
    ("hot dogs", "meat_seafood", "pork", 32, ["hot dog", "franks"]),
    ("pork chops", "meat_seafood", "pork", 33, ["pork chop", "pork loin", "pork tenderloin"]),
    ("ham", "meat_seafood", "pork", 34, ["spiral ham"]),
    ("salmon", "meat_seafood", "seafood", 40, ["salmon fillet", "salmon fillets"]),
    ("shrimp", "meat_seafood", "seafood", 41, ["prawns"]),
    ("tilapia", "meat_seafood", "seafood", 42, ["cod", "white fish", "fish fillets"]),

    # DAIRY & EGGS
    ("milk", "dairy_eggs", "milk", 10, ["whole milk", "2% milk", "1% milk", "skim milk", "oat milk", "almond milk"]),
    ("half and half", "dairy_eggs", "milk", 11, ["half & half", "heavy cream", "whipping cream", "coffee creamer"]),
    ("eggs", "dairy_eggs", "eggs", 20, ["egg", "dozen eggs", "large eggs", "egg whites"]),
    ("yogurt", "dairy_eggs", "yogurt", 30, ["greek yogurt", "yoghurt", "yogurts"]),
    ("sour cream", "dairy_eggs", "yogurt", 31, ["cottage cheese"]),
    ("cheese", "dairy_eggs", "cheese", 40, ["cheddar", "mozzarella", "shredded cheese", "sliced cheese", "swiss cheese"]),
    ("parmesan", "dairy_eggs", "cheese", 41, ["parmesan cheese", "parmigiano"]),
    ("cream cheese", "dairy_eggs", "cheese", 42, []),
    ("string cheese", "dairy_eggs", "cheese", 43, ["cheese sticks"]),
    ("butter", "dairy_eggs", "butter", 50, ["unsalted butter", "salted butter", "margarine"]),

    # FROZEN
    ("ice cream", "frozen", "frozen_desserts", 10, ["gelato", "frozen yogurt", "popsicles"]),
    ("frozen pizza", "frozen", "frozen_meals", 20, []),
    ("frozen dinners", "frozen", "frozen_meals", 21, ["frozen dinner", "tv dinners", "frozen meals"]),
    ("frozen vegetables", "frozen", "frozen_produce", 30, ["frozen peas", "frozen corn", "frozen broccoli"]),
    ("frozen fruit", "frozen", "frozen_produce", 31, ["frozen berries", "frozen strawberries"]),
    ("french fries", "frozen", "frozen_sides", 40, ["frozen fries", "tater tots", "hash browns"]),
    ("frozen waffles", "frozen", "frozen_breakfast", 50, ["waffles", "eggo"]),
    ("ice", "frozen", None, 90, ["bag of ice", "ice cubes"]),

    # PANTRY
    ("canned tomatoes", "pantry", "canned", 10, ["diced tomatoes", "crushed tomatoes", "tomato paste"]),
    ("black beans", "pantry", "canned", 11, ["pinto beans", "kidney beans", "chickpeas", "refried beans"]),
    ("canned tuna", "pantry", "canned", 12, ["tuna"]),
    ("soup", "pantry", "canned", 13, ["chicken soup", "chicken broth", "broth", "stock"]),
    ("pasta", "pantry", "pasta_rice", 20, ["spaghetti", "penne", "macaroni", "noodles", "egg noodles"]),
    ("rice", "pantry", "pasta_rice", 21, ["white rice", "brown rice", "jasmine rice", "basmati rice"]),
    ("quinoa", "pantry", "pasta_rice", 22, ["couscous"]),
    ("pasta sauce", "pantry", "pasta_rice", 23, ["marinara", "tomato sauce", "spaghetti sauce"]),
    ("flour", "pantry", "baking", 30, ["all purpose flour", "bread flour"]),
    ("sugar", "pantry", "baking", 31, ["brown sugar", "powdered sugar"]),
    ("baking soda", "pantry", "baking", 32, ["baking powder"]),
    ("vanilla extract", "pantry", "baking", 33, ["vanilla"]),
    ("chocolate chips", "pantry", "baking", 34, []),
    ("salt", "pantry", "spices", 40, ["sea salt", "kosher salt"]),
    ("black pepper", "pantry", "spices", 41, ["peppercorns"]),
    ("cinnamon", "pantry", "spices", 42, ["ground cinnamon"]),
    ("cumin", "pantry", "spices", 43, ["chili powder", "paprika", "oregano"]),
    ("olive oil", "pantry", "condiments", 50, ["vegetable oil", "canola oil", "cooking spray"]),
    ("ketchup", "pantry", "condiments", 51, ["catsup"]),
    ("mustard", "pantry", "condiments", 52, ["dijon mustard"]),
    ("mayonnaise", "pantry", "condiments", 53, ["mayo"]),
    ("salsa", "pantry", "condiments", 54, []),
    ("soy sauce", "pantry", "condiments", 55, ["hot sauce", "sriracha"]),
    ("vinegar", "pantry", "condiments", 56, ["balsamic vinegar", "apple cider vinegar"]),
    ("peanut butter", "pantry", "condiments", 57, ["almond butter"]),
    ("jam", "pantry", "condiments", 58, ["jelly", "strawberry jam", "grape jelly"]),
    ("honey", "pantry", "condiments", 59, ["maple syrup", "syrup"]),
    ("capers", "pantry", "condiments", 60, ["caper"]),
    ("cereal", "pantry", "breakfast", 70, ["cheerios", "corn flakes", "granola"]),
    ("oatmeal", "pantry", "breakfast", 71, ["oats", "rolled oats"]),
    ("pancake mix", "pantry", "breakfast", 72, ["bisquick"]),

    # SNACKS
    ("potato chips", "snacks", "chips", 10, ["tortilla chips", "doritos", "pringles"]),
    ("chips", "snacks", "chips", 11, []),
    ("pretzels", "snacks", "chips", 12, ["popcorn"]),
    ("crackers", "snacks", "crackers", 20, ["saltines", "ritz", "goldfish", "graham crackers"]),
    ("cookies", "snacks", "sweets", 30, ["oreos"]),
    ("candy", "snacks", "sweets", 31, ["chocolate", "gummy bears"]),
    ("granola bars", "snacks", "bars", 40, ["protein bars", "granola bar"]),
    ("almonds", "snacks", "nuts", 50, ["mixed nuts", "cashews", "peanuts", "trail mix"]),

    # BEVERAGES
    ("water", "beverages", "water", 10, ["bottled water", "sparkling water", "seltzer"]),
    ("soda", "beverages", "soda", 20, ["coke", "pepsi", "sprite", "ginger ale"]),
    ("orange juice", "beverages", "juice", 30, ["oj", "apple juice"]),
    ("coffee", "beverages", "coffee_tea", 40, ["ground coffee", "coffee beans", "k cups"]),
    ("tea", "beverages", "coffee_tea", 41, ["green tea", "tea bags", "iced tea"]),
    ("beer", "beverages", "alcohol", 50, []),
    ("wine", "beverages", "alcohol", 51, ["red wine", "white wine"]),
    ("sports drinks", "beverages", "sports", 60, ["gatorade"]),

    # HOUSEHOLD
    ("paper towels", "household", "paper", 10, ["paper towel"]),
    ("toilet paper", "household", "paper", 11, ["tp", "bath tissue"]),
    ("napkins", "household", "paper", 12, ["tissues", "kleenex"]),
    ("dish soap", "household", "cleaning", 20, ["dishwashing liquid", "dawn"]),
    ("dishwasher pods", "household", "cleaning", 21, ["dishwasher detergent", "cascade"]),
    ("sponges", "household", "cleaning", 22, ["sponge"]),
    ("all purpose cleaner", "household", "cleaning", 23, ["windex", "lysol", "disinfecting wipes"]),
    ("trash bags", "household", "kitchen", 30, ["garbage bags"]),
    ("aluminum foil", "household", "kitchen", 31, ["foil", "tin foil", "plastic wrap", "parchment paper"]),
    ("ziploc bags", "household", "kitchen", 32, ["sandwich bags", "freezer bags"]),
    ("light bulbs", "household", "home", 40, ["lightbulbs", "batteries"]),

    # PERSONAL CARE
    ("shampoo", "personal_care", "hair_care", 10, ["conditioner"]),
    ("body wash", "personal_care", "body", 20, ["bar soap", "hand soap"]),
    ("deodorant", "personal_care", "body", 21, []),
    ("lotion", "personal_care", "body", 22, ["sunscreen"]),
    ("razors", "personal_care", "body", 23, ["shaving cream"]),
    ("toothpaste", "personal_care", "oral_care", 30, ["toothbrush", "floss", "mouthwash"]),
    ("pain reliever", "personal_care", "health", 40, ["ibuprofen", "tylenol", "advil", "vitamins"]),
    ("diapers", "personal_care", "baby", 50, ["baby wipes", "wipes"]),

    # PET
    ("dog food", "pet", "pet_food", 10, ["puppy food"]),
    ("cat food", "pet", "pet_food", 11, ["kitten food"]),
    ("dog treats", "pet", "pet_food", 12, ["cat treats"]),
    ("cat litter", "pet", "pet_supplies", 20, ["kitty litter", "litter"]),
]

VOCABULARY: List[VocabEntry] = [
    VocabEntry(canonical, category, subcategory, order_hint, tuple(synonyms))
    for canonical, category, subcategory, order_hint, synonyms in _VOCABULARY_ROWS
]


# =============================================================================
# TOKEN RULES (first matching rule wins)
# =============================================================================

TOKEN_RULES: List[TokenRule] = [
    TokenRule(("soap", "detergent", "bleach", "paper towel", "toilet paper", "trash"), "household", "cleaning"),
    TokenRule(("shampoo", "toothpaste", "deodorant", "conditioner", "toothbrush"), "personal_care"),
    TokenRule(("soda", "juice", "water", "coffee", "tea"), "beverages"),
    TokenRule(("chip", "cracker", "cookie", "granola bar"), "snacks"),
    TokenRule(("egg", "milk", "yogurt", "cheese", "butter"), "dairy_eggs"),
    TokenRule(("apple", "banana", "lettuce", "onion", "tomato", "carrot"), "produce"),
    TokenRule(("chicken", "beef", "pork", "salmon", "shrimp"), "meat_seafood"),
    TokenRule(("rice", "pasta", "flour", "sugar", "salt", "pepper", "bean"), "pantry"),
]


# =============================================================================
# NAME NORMALIZATION TABLES
# =============================================================================

# Common single-token OCR misreads
OCR_FIXES: Dict[str, str] = {
    "miik": "milk",
    "mi1k": "milk",
    "1ime": "lime",
    "bannana": "banana",
    "banannas": "bananas",
    "app1e": "apple",
    "y0gurt": "yogurt",
    "egqs": "eggs",
    "cheeze": "cheese",
}

# Never singularized
SINGULAR_EXCEPTIONS = frozenset({"eggs", "chips", "greens", "beans"})


# =============================================================================
# ORDERING TABLES
# =============================================================================

SUBCATEGORY_RANK: Dict[str, int] = {
    "fruit": 0,
    "vegetables": 1,
    "salad_greens": 2,
    "herbs": 3,
    "bread": 0,
    "tortillas": 1,
    "pastries": 2,
    "milk": 0,
    "eggs": 1,
    "yogurt": 2,
    "cheese": 3,
    "butter": 4,
    "canned": 0,
    "pasta_rice": 1,
    "baking": 2,
    "spices": 3,
    "condiments": 4,
    "breakfast": 5,
}


# =============================================================================
# ERRAND PATTERNS (list entries that are tasks, not products)
# =============================================================================

ERRAND_PATTERNS: List[str] = [
    r"\boil change\b",
    r"\bcar wash\b",
    r"\bdmv\b",
    r"\btire rotation\b",
    r"\bsmog check\b",
    r"\bemissions test\b",
    r"\bpick ?up (?:prescription|dry cleaning|package)\b",
    r"\bdrop ?off\b",
    r"\bdry cleaning\b",
    r"\bpost office\b",
    r"\bhaircut\b",
    r"\bappointment\b",
    r"\breturn (?:library )?books?\b",
]

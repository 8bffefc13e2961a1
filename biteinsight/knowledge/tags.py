"""
Profile Tags - Closed set of health conditions, allergies and dietary labels

Every rule table (threshold overrides, allergy keywords, insight weights,
substitutes) is keyed by these labels. Labels are matched exactly and
case-sensitively. Anything outside the set parses to ProfileTag.OTHER, which
has no rule data attached.
"""

from enum import Enum
from typing import Dict, Iterable, List


class ProfileTag(Enum):
    """Known profile labels. Values are the exact strings stored on profiles."""

    # Health conditions
    ADHD = 'ADHD'
    AUTISM = 'Autism'
    CROHNS_DISEASE = "Chron's Disease"
    DIABETES = 'Diabetes'
    ECZEMA_PSORIASIS = 'Eczema / Psoriasis'
    GERD_ACID_REFLUX = 'GERD / Acid Reflux'
    HEART_DISEASE = 'Heart Disease'
    HIGH_CHOLESTEROL = 'High Cholesterol'
    HYPERTENSION = 'Hypertension'
    IBS = 'IBS'
    KIDNEY_DISEASE = 'Kidney Disease'
    LEAKY_GUT_SYNDROME = 'Leaky Gut Syndrome'
    LUPUS = 'Lupus'
    ME_CHRONIC_FATIGUE = 'ME / Chronic Fatigue'
    METABOLIC_SYNDROME = 'Metabolic Syndrome'
    MIGRAINE = 'Migraine / Chronic Headaches'
    MULTIPLE_SCLEROSIS = 'Multiple Sclerosis'
    PCOS = 'PCOS'
    RHEUMATOID_ARTHRITIS = 'Rheumatoid Arthritis'
    SIBO = 'SIBO'
    ULCERATIVE_COLITIS = 'Ulcerative Colitis'

    # Allergies and intolerances
    CELERY_ALLERGY = 'Celery Allergy'
    EGG_ALLERGY = 'Egg Allergy'
    FISH_ALLERGY = 'Fish Allergy'
    FRUCTOSE_INTOLERANCE = 'Fructose Intolerance'
    GLUTEN_INTOLERANCE = 'Gluten Intolerance'
    HISTAMINE_INTOLERANCE = 'Histamine Intolerance'
    LACTOSE_INTOLERANCE = 'Lactose Intolerance'
    LUPIN_ALLERGY = 'Lupin Allergy'
    MSG_SENSITIVITY = 'MSG Sensitivity'
    MUSTARD_ALLERGY = 'Mustard Allergy'
    PEANUT_ALLERGY = 'Peanut Allergy'
    SALICYLATE_SENSITIVITY = 'Salicylate Sensitivity'
    SESAME_ALLERGY = 'Sesame Allergy'
    SHELLFISH_ALLERGY = 'Shellfish Allergy'
    SOY_ALLERGY = 'Soy Allergy'
    SULPHITE_SENSITIVITY = 'Sulphite Sensitivity'
    TREE_NUT_ALLERGY = 'Tree Nut Allergy'

    # Dietary preferences (onboarding labels)
    CHILD_FRIENDLY = 'Child-Friendly / Additive-Free'
    CLEAN_EATING = 'Clean Eating'
    DAIRY_FREE = 'Dairy-Free'
    FODMAP_DIET = 'FODMAP Diet'
    LOW_CARB_KETO = 'Low-Carb / Keto'
    HIGH_PROTEIN_FITNESS = 'High-Protein / Fitness'
    PALEO = 'Paleo'
    PLANT_BASED = 'Plant-Based'
    POST_BARIATRIC_SURGERY = 'Post-Bariatric Surgery'
    PREGNANCY_SAFE = 'Pregnancy-safe Diet'
    SUSTAINABLE_ECO = 'Sustainable / Eco'
    WEIGHT_LOSS = 'Weight Loss'
    WHOLE30 = 'Whole30'

    # Dietary preferences (display labels of DietaryTag codes)
    DIABETIC = 'Diabetic'
    KETO = 'Keto'
    GLUTEN_FREE = 'Gluten-free'
    VEGAN = 'Vegan'
    VEGETARIAN = 'Vegetarian'
    LACTOSE_FREE = 'Lactose-free'
    PESCATARIAN = 'Pescatarian'
    KOSHER = 'Kosher'

    OTHER = '__other__'

    @classmethod
    def parse(cls, label: str) -> 'ProfileTag':
        """Exact-label lookup. Unknown labels return OTHER, never raise."""
        if not isinstance(label, str):
            return cls.OTHER
        try:
            return cls(label)
        except ValueError:
            return cls.OTHER

    @classmethod
    def is_known(cls, label: str) -> bool:
        return cls.parse(label) is not cls.OTHER


class DietaryTag(Enum):
    """Short dietary preference codes stored on user profiles"""

    DIABETIC = 'diabetic'
    KETO = 'keto'
    GLUTEN_FREE = 'gluten-free'
    VEGAN = 'vegan'
    VEGETARIAN = 'vegetarian'
    LACTOSE = 'lactose'
    PESCATARIAN = 'pescatarian'
    KOSHER = 'kosher'


DIETARY_LABELS: Dict[str, str] = {
    DietaryTag.DIABETIC.value: 'Diabetic',
    DietaryTag.KETO.value: 'Keto',
    DietaryTag.GLUTEN_FREE.value: 'Gluten-free',
    DietaryTag.VEGAN.value: 'Vegan',
    DietaryTag.VEGETARIAN.value: 'Vegetarian',
    DietaryTag.LACTOSE.value: 'Lactose-free',
    DietaryTag.PESCATARIAN.value: 'Pescatarian',
    DietaryTag.KOSHER.value: 'Kosher',
}

_LABEL_TO_CODE: Dict[str, str] = {label: code for code, label in DIETARY_LABELS.items()}


def preference_labels(preferences: Iterable[str]) -> List[str]:
    """
    Map dietary preference codes to display labels ('vegan' -> 'Vegan').

    Values that are not codes (e.g. onboarding labels such as 'Weight Loss')
    pass through unchanged.
    """
    return [DIETARY_LABELS.get(p, p) for p in preferences]


def preference_codes(preferences: Iterable[str]) -> List[str]:
    """Inverse of preference_labels ('Vegan' -> 'vegan'); other values pass through."""
    return [_LABEL_TO_CODE.get(p, p) for p in preferences]


def parse_tags(labels: Iterable[str]) -> List[ProfileTag]:
    """Parse labels to tags, dropping unknown ones"""
    tags = []
    for label in labels:
        tag = ProfileTag.parse(label)
        if tag is not ProfileTag.OTHER:
            tags.append(tag)
    return tags

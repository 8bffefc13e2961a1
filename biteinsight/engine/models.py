"""
Data model for scan classification

Plain dataclasses. Instances are recreated for every scan and never persisted
by the engine. Conversion helpers (from_dict / to_dict) exist for the batch
pipeline, which reads profiles and products from JSON.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from biteinsight.knowledge.tags import ProfileTag


# Status colours shared by nutrient ratings, insights and Nutri-score
POSITIVE_GREEN = '#009a1f'
GOOD_LIME = '#b8d828'
OK_YELLOW = '#F5B811'
POOR_ORANGE = '#ff8736'
NEGATIVE_RED = '#ff3f42'

NUTRIENT_KEYS: Tuple[str, ...] = (
    'energyKcal', 'fat', 'saturatedFat', 'carbs', 'sugars',
    'netCarbs', 'fiber', 'proteins', 'salt',
)

DEFAULT_RATING_LABELS: Tuple[str, str, str] = ('Low', 'Moderate', 'High')

INSIGHT_KEYS: Tuple[str, ...] = (
    'glycemic', 'sodium', 'saturatedFat', 'sugar', 'fiber', 'protein',
    'calorie', 'inflammatoryFat', 'digestiveLoad', 'carbLoad', 'additives',
)

NumberLike = Union[int, float, str, None]


class TriState(Enum):
    YES = 'yes'
    NO = 'no'
    MAYBE = 'maybe'
    UNKNOWN = 'unknown'

    @classmethod
    def parse(cls, value: Any) -> 'TriState':
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.UNKNOWN


class FlagReason(Enum):
    VEGAN = 'vegan'
    VEGETARIAN = 'vegetarian'
    USER_FLAGGED = 'user_flagged'


class ImpactBucket(Enum):
    LOW = 'low'
    MODERATE = 'moderate'
    HIGH = 'high'
    VERY_HIGH = 'veryHigh'

    @property
    def icon_suffix(self) -> str:
        return 'very-high' if self is ImpactBucket.VERY_HIGH else self.value


@dataclass
class Ingredient:
    """One ingredient. Structured records carry id and vegan/vegetarian metadata."""

    text: str
    id: Optional[str] = None
    vegan: TriState = TriState.UNKNOWN
    vegetarian: TriState = TriState.UNKNOWN
    percent_estimate: Optional[float] = None

    @classmethod
    def from_dict(cls, record: Dict[str, Any]) -> 'Ingredient':
        percent = record.get('percent_estimate')
        raw_id = record.get('id')
        return cls(
            text=str(record.get('text') or ''),
            id=str(raw_id) if raw_id else None,
            vegan=TriState.parse(record.get('vegan')),
            vegetarian=TriState.parse(record.get('vegetarian')),
            percent_estimate=float(percent) if isinstance(percent, (int, float)) else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'text': self.text,
            'id': self.id,
            'vegan': self.vegan.value,
            'vegetarian': self.vegetarian.value,
            'percent_estimate': self.percent_estimate,
        }


@dataclass
class Threshold:
    """Rating breakpoints for one nutrient (per 100 g)."""

    low: float
    moderate: float
    inverted: bool = False
    labels: Optional[Tuple[str, str, str]] = None


@dataclass
class ThresholdOverride:
    """Partial threshold attached to a profile tag"""

    low: Optional[float] = None
    moderate: Optional[float] = None
    inverted: Optional[bool] = None
    labels: Optional[Tuple[str, str, str]] = None


@dataclass
class AllergyEntry:
    tags: List[str]
    keywords: List[str]
    ingredient_ids: List[str]


@dataclass
class NutrientData:
    """
    Raw nutrient values for one basis (per 100 g or per serving).

    Values may be numbers or numeric strings as delivered by the product
    provider; parsing happens at the point of use.
    """

    sugars: NumberLike = None
    fiber: NumberLike = None
    carbs: NumberLike = None
    salt: NumberLike = None
    fat: NumberLike = None
    saturated_fat: NumberLike = None
    proteins: NumberLike = None
    energy_kcal: NumberLike = None
    additive_count: Optional[int] = None

    def has_any(self) -> bool:
        values = (self.sugars, self.fiber, self.carbs, self.salt, self.fat,
                  self.saturated_fat, self.proteins, self.energy_kcal)
        return any(v not in (None, '') for v in values)


@dataclass
class Profile:
    """Active person's tag sets plus their personally flagged ingredient names."""

    conditions: List[str] = field(default_factory=list)
    allergies: List[str] = field(default_factory=list)
    dietary_preferences: List[str] = field(default_factory=list)
    flagged_ingredients: List[str] = field(default_factory=list)
    name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Profile':
        return cls(
            conditions=list(data.get('health_conditions') or data.get('conditions') or []),
            allergies=list(data.get('allergies') or []),
            dietary_preferences=list(data.get('dietary_preferences') or []),
            flagged_ingredients=list(data.get('flagged_ingredients') or []),
            name=data.get('full_name') or data.get('name'),
        )


@dataclass
class Product:
    """Normalised product data handed to the engine"""

    code: Optional[str] = None
    name: str = ''
    brand: str = ''
    ingredients_text: str = ''
    allergen_tags: List[str] = field(default_factory=list)
    structured_ingredients: List[Dict[str, Any]] = field(default_factory=list)
    lang: str = 'en'
    nutriscore_grade: Optional[str] = None
    quantity: str = ''
    serving_size: str = ''
    nutrients_100g: NutrientData = field(default_factory=NutrientData)
    nutrients_serving: NutrientData = field(default_factory=NutrientData)


@dataclass
class FlaggedIngredient:
    ingredient: Ingredient
    reason: FlagReason


@dataclass
class CategorizedIngredients:
    harmful: List[FlaggedIngredient] = field(default_factory=list)
    ok: List[Ingredient] = field(default_factory=list)
    safe: List[Ingredient] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.harmful) + len(self.ok) + len(self.safe)


@dataclass
class InsightResult:
    label: str
    color: str
    bucket: ImpactBucket


@dataclass
class InsightDefinition:
    key: str
    label: str
    relevant_to: Tuple[ProfileTag, ...]
    compute: Callable[[NutrientData], Optional[InsightResult]]
    icon_prefix: str

    def icon_for(self, bucket: ImpactBucket) -> str:
        return f"{self.icon_prefix}-{bucket.icon_suffix}"


@dataclass
class RankedInsight:
    definition: InsightDefinition
    result: InsightResult
    weight: int
    explanation: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'key': self.definition.key,
            'title': self.definition.label,
            'label': self.result.label,
            'color': self.result.color,
            'bucket': self.result.bucket.value,
            'icon': self.definition.icon_for(self.result.bucket),
            'weight': self.weight,
            'explanation': self.explanation,
        }


@dataclass
class NutrientRating:
    """Display row for one nutrient: formatted value, % of DRI and rating."""

    key: str
    name: str
    value: float
    display_value: str
    dri_percent: str
    label: str
    color: str


@dataclass
class ScanAnalysis:
    """Everything computed for one product and one profile"""

    product: Product
    ingredients: List[Ingredient]
    categorized: CategorizedIngredients
    matched_allergens: List[str]
    allergen_names: List[str]
    thresholds: Dict[str, Threshold]
    ratings_100g: List[NutrientRating]
    ratings_serving: List[NutrientRating]
    insights: List[RankedInsight]
    additive_count: int
    nutriscore: Optional[Dict[str, str]] = None

    def summary(self) -> Dict[str, Any]:
        """Flat row for audit files"""
        return {
            'code': self.product.code,
            'name': self.product.name,
            'ingredients': len(self.ingredients),
            'harmful': len(self.categorized.harmful),
            'ok': len(self.categorized.ok),
            'safe': len(self.categorized.safe),
            'matched_allergens': '; '.join(self.matched_allergens),
            'additive_count': self.additive_count,
            'insights': '; '.join(i.definition.key for i in self.insights),
            'nutriscore': self.nutriscore['label'] if self.nutriscore else '',
        }

    def thresholds_dict(self) -> Dict[str, Dict[str, Any]]:
        return {key: asdict(t) for key, t in self.thresholds.items()}

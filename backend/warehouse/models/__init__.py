from .inventory import Product, RawMaterial
from .customers import Customer
from .bills import Bill, BillLine
from .production import ProductRecipe, RecipeMaterial, ProductionBatch
from .documents import DocumentSequence

__all__ = [
    'Product', 'RawMaterial',
    'Customer',
    'Bill', 'BillLine',
    'ProductRecipe', 'RecipeMaterial', 'ProductionBatch',
    'DocumentSequence',
]

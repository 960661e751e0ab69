from catalog.models.category import Category
from catalog.services.named_entity import NamedEntityManager
from catalog.utils.dynamo_repo import CategoryRepository


class CategoryManager(NamedEntityManager):
    model = Category
    repository_class = CategoryRepository

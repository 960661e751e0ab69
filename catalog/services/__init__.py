from catalog.services.categories import CategoryManager
from catalog.services.authors import AuthorManager
from catalog.services.books import BookManager
from catalog.services.borrowing import BorrowWorkflow

__all__ = ['CategoryManager', 'AuthorManager', 'BookManager', 'BorrowWorkflow']

"""Script to add sample categories and authors to the catalog"""
from dotenv import load_dotenv

load_dotenv()

from catalog import create_app
from catalog.exceptions import EntityAlreadyExists
from catalog.services import AuthorManager, CategoryManager

SAMPLE_CATEGORIES = [
    ('Fiction', 'Novels, short stories, and literary fiction'),
    ('Non-Fiction', 'Biographies, memoirs, and factual books'),
    ('Science & Technology', 'Science, technology, and innovation'),
    ('Children\'s Books', 'Books for children and young readers'),
]

SAMPLE_AUTHORS = [
    {'name': 'Jane Austen', 'nationality': 'British', 'birth_date': '1775-12-16',
     'email': 'jane.austen@example.com', 'genres': ['Romance', 'Satire'],
     'biography': 'English novelist known for her novels of manners.'},
    {'name': 'George Orwell', 'nationality': 'British', 'birth_date': '1903-06-25',
     'email': 'george.orwell@example.com', 'genres': ['Dystopia', 'Essay'],
     'biography': 'English novelist, essayist and critic.'},
]

app = create_app()

with app.app_context():
    categories = CategoryManager()
    for name, description in SAMPLE_CATEGORIES:
        try:
            categories.create({'name': name, 'description': description})
            print(f"Added category: {name}")
        except EntityAlreadyExists:
            print(f"Category already exists: {name}")

    authors = AuthorManager()
    for data in SAMPLE_AUTHORS:
        try:
            authors.create(data)
            print(f"Added author: {data['name']}")
        except EntityAlreadyExists:
            print(f"Author already exists: {data['name']}")

    print("\nSample data added successfully!")

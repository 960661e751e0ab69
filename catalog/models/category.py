class Category:
    entity = 'category'
    plural = 'categories'
    updatable_fields = ('name', 'description')

    @staticmethod
    def new(data):
        return {
            'name': data['name'],
            'description': data.get('description'),
            'books_count': 0,
        }

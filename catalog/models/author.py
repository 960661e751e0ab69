class Author:
    entity = 'author'
    plural = 'authors'
    updatable_fields = (
        'name', 'biography', 'birth_date', 'nationality', 'email',
        'genres', 'social_media',
    )
    profile_folder = 'authors/profiles'

    @staticmethod
    def new(data):
        return {
            'name': data['name'],
            'biography': data.get('biography'),
            'birth_date': data.get('birth_date'),
            'nationality': data.get('nationality'),
            'email': data.get('email'),
            'genres': list(data.get('genres') or []),
            'social_media': data.get('social_media'),
            'books_count': 0,
        }

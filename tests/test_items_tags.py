import io

from tests.conftest import bearer, login, register_user


def create_tag(client, headers, name, slug=None, **fields):
    res = client.post('/tags', headers=headers, json={'name': name, 'slug': slug or name.lower(), **fields})
    assert res.status_code == 201, res.get_data(as_text=True)
    return res.get_json()['data']


def create_item(client, headers, **fields):
    res = client.post('/items', headers=headers, json=fields)
    assert res.status_code == 201, res.get_data(as_text=True)
    return res.get_json()['data']


# ==================== Tags ====================

def test_tag_crud(client, user_headers):
    tag = create_tag(client, user_headers, 'Python', color='#3776ab')
    assert tag['usage_count'] == 0

    res = client.get(f"/tags/{tag['id']}")
    assert res.get_json()['data']['color'] == '#3776ab'

    res = client.put(f"/tags/{tag['id']}", headers=user_headers, json={'description': 'Snakes'})
    assert res.status_code == 200
    assert res.get_json()['data']['description'] == 'Snakes'

    assert client.delete(f"/tags/{tag['id']}", headers=user_headers).status_code == 200
    assert client.get(f"/tags/{tag['id']}").status_code == 404


def test_tag_update_ignores_explicit_nulls(client, user_headers):
    tag = create_tag(client, user_headers, 'Docker', description='Containers')
    res = client.put(f"/tags/{tag['id']}", headers=user_headers, json={'slug': None, 'name': None})
    assert res.status_code == 200, res.get_data(as_text=True)
    data = res.get_json()['data']
    assert (data['name'], data['slug'], data['description']) == ('Docker', 'docker', 'Containers')


def test_tag_uniqueness_and_color(client, user_headers):
    create_tag(client, user_headers, 'API', slug='api')
    res = client.post('/tags', headers=user_headers, json={'name': 'API', 'slug': 'api-2'})
    assert res.status_code == 400
    assert res.get_json()['message'] == 'Tag name must be unique'

    res = client.post('/tags', headers=user_headers, json={'name': 'REST', 'slug': 'rest', 'color': 'blue'})
    assert res.status_code == 400


def test_popular_is_not_shadowed_by_id_route(client, user_headers):
    python = create_tag(client, user_headers, 'Python')
    docker = create_tag(client, user_headers, 'Docker')
    create_tag(client, user_headers, 'News')
    create_item(client, user_headers, title='One', slug='one', tags=[python['id'], docker['id']])
    create_item(client, user_headers, title='Two', slug='two', tags=[python['id']])

    res = client.get('/tags/popular?limit=2')
    assert res.status_code == 200
    assert [tag['name'] for tag in res.get_json()['data']] == ['Python', 'Docker']


def test_tag_index_search(client, user_headers):
    create_tag(client, user_headers, 'Python')
    create_tag(client, user_headers, 'JavaScript')
    res = client.get('/tags?search=Java')
    data = res.get_json()['data']
    assert [tag['name'] for tag in data['tags']] == ['JavaScript']
    assert data['pagination']['total'] == 1


# ==================== Items ====================

def test_item_lifecycle(client, user_headers):
    item = create_item(client, user_headers, title='Hello', slug='hello', price='19.99',
                       status='published', metadata={'source': 'test'})
    assert item['status'] == 'published'
    assert item['published_at'] is not None
    assert item['price'] == 19.99
    assert item['tags'] == []

    res = client.get(f"/items/{item['id']}")
    assert res.get_json()['data']['view_count'] == 1
    res = client.get(f"/items/{item['id']}")
    assert res.get_json()['data']['view_count'] == 2

    res = client.put(f"/items/{item['id']}", headers=user_headers, json={'title': 'Hello again'})
    assert res.status_code == 200
    assert res.get_json()['data']['title'] == 'Hello again'

    assert client.delete(f"/items/{item['id']}", headers=user_headers).status_code == 200
    assert client.get(f"/items/{item['id']}").status_code == 404


def test_item_validation(client, user_headers):
    res = client.post('/items', headers=user_headers, json={'title': 'No slug'})
    assert res.status_code == 400

    res = client.post('/items', headers=user_headers, json={'title': 'T', 'slug': 't', 'status': 'bogus'})
    assert res.status_code == 400

    res = client.post('/items', headers=user_headers, json={'title': 'T', 'slug': 't', 'tags': [999]})
    assert res.status_code == 400
    assert res.get_json()['message'] == 'One or more tags do not exist'

    res = client.post('/items', headers=user_headers, json={'title': 'T', 'slug': 't', 'category_id': 999})
    assert res.status_code == 400

    create_item(client, user_headers, title='T', slug='t')
    res = client.post('/items', headers=user_headers, json={'title': 'T2', 'slug': 't'})
    assert res.status_code == 400
    assert res.get_json()['message'] == 'Item slug must be unique'


def test_item_tags_keep_usage_counts(client, user_headers):
    python = create_tag(client, user_headers, 'Python')
    api = create_tag(client, user_headers, 'API')
    item = create_item(client, user_headers, title='T', slug='t', tags=[python['id']])
    assert [tag['name'] for tag in item['tags']] == ['Python']

    res = client.put(f"/items/{item['id']}", headers=user_headers, json={'tags': [api['id']]})
    assert [tag['name'] for tag in res.get_json()['data']['tags']] == ['API']
    assert client.get(f"/tags/{python['id']}").get_json()['data']['usage_count'] == 0
    assert client.get(f"/tags/{api['id']}").get_json()['data']['usage_count'] == 1

    client.delete(f"/items/{item['id']}", headers=user_headers)
    assert client.get(f"/tags/{api['id']}").get_json()['data']['usage_count'] == 0


def test_only_owner_or_admin_may_modify(client, user_headers, admin_headers):
    item = create_item(client, user_headers, title='Mine', slug='mine')

    register_user(client, 'mallory', 'mallory@example.com')
    other = bearer(login(client, 'mallory'))
    res = client.put(f"/items/{item['id']}", headers=other, json={'title': 'Stolen'})
    assert res.status_code == 403
    assert client.delete(f"/items/{item['id']}", headers=other).status_code == 403

    res = client.put(f"/items/{item['id']}", headers=admin_headers, json={'is_featured': True})
    assert res.status_code == 200
    assert res.get_json()['data']['is_featured'] is True


def test_item_index_filters(client, user_headers):
    res = client.post('/categories', headers=user_headers, json={'name': 'Tech', 'slug': 'tech'})
    category_id = res.get_json()['data']['id']
    create_item(client, user_headers, title='Draft', slug='draft', category_id=category_id)
    create_item(client, user_headers, title='Live', slug='live', status='published', is_featured=True)
    create_item(client, user_headers, title='Video', slug='video', type='video')

    def slugs(query):
        return sorted(item['slug'] for item in client.get('/items', query_string=query).get_json()['data']['items'])

    assert slugs({}) == ['draft', 'live', 'video']
    assert slugs({'category_id': category_id}) == ['draft']
    assert slugs({'status': 'published'}) == ['live']
    assert slugs({'featured': 'true'}) == ['live']
    assert slugs({'type': 'video'}) == ['video']
    assert slugs({'search': 'Liv'}) == ['live']


def test_related_items(client, user_headers):
    res = client.post('/categories', headers=user_headers, json={'name': 'Tech', 'slug': 'tech'})
    category_id = res.get_json()['data']['id']
    base = create_item(client, user_headers, title='Base', slug='base', category_id=category_id)
    for i in range(6):
        create_item(client, user_headers, title=f'Sibling {i}', slug=f'sibling-{i}', category_id=category_id)
    create_item(client, user_headers, title='Elsewhere', slug='elsewhere')

    related = client.get(f"/items/{base['id']}/related").get_json()['data']
    assert len(related) == 5
    assert all(item['category_id'] == category_id and item['id'] != base['id'] for item in related)


def test_like_and_share(client, user_headers):
    item = create_item(client, user_headers, title='Fun', slug='fun')
    assert client.post(f"/items/{item['id']}/like").status_code == 401

    res = client.post(f"/items/{item['id']}/like", headers=user_headers)
    assert res.get_json()['data'] == {'id': item['id'], 'likes': 1}
    res = client.post(f"/items/{item['id']}/like", headers=user_headers)
    assert res.get_json()['data']['likes'] == 2
    res = client.post(f"/items/{item['id']}/share", headers=user_headers)
    assert res.get_json()['data']['shares'] == 1

    metadata = client.get(f"/items/{item['id']}").get_json()['data']['metadata']
    assert metadata == {'likes': 2, 'shares': 1}


def test_item_image_upload(app, client, user_headers, tmp_path):
    app.extensions['settings'].set('storage.upload_path', str(tmp_path))
    item = create_item(client, user_headers, title='Pic', slug='pic')
    url = f"/items/{item['id']}/image"

    res = client.post(url, headers=user_headers, content_type='multipart/form-data',
                      data={'image': (io.BytesIO(b'fake png bytes'), '../../photo.png')})
    assert res.status_code == 200, res.get_data(as_text=True)
    stored = res.get_json()['data']['featured_image']
    assert stored.startswith(str(tmp_path))
    assert stored.endswith('_photo.png')
    with open(stored, 'rb') as handle:
        assert handle.read() == b'fake png bytes'


def test_item_image_upload_rejections(app, client, user_headers, tmp_path):
    settings = app.extensions['settings']
    settings.set('storage.upload_path', str(tmp_path))
    item = create_item(client, user_headers, title='Pic', slug='pic')
    url = f"/items/{item['id']}/image"

    res = client.post(url, headers=user_headers, content_type='multipart/form-data', data={'caption': 'none'})
    assert res.status_code == 400
    assert res.get_json()['message'] == 'No file uploaded'

    res = client.post(url, headers=user_headers, content_type='multipart/form-data',
                      data={'image': (io.BytesIO(b'MZ'), 'tool.exe')})
    assert res.status_code == 400
    assert res.get_json()['message'] == 'File type not allowed'

    settings.set('storage.max_file_size', 4)
    res = client.post(url, headers=user_headers, content_type='multipart/form-data',
                      data={'image': (io.BytesIO(b'too many bytes'), 'big.jpg')})
    assert res.status_code == 400
    assert res.get_json()['message'] == 'File is too large'
    assert list(tmp_path.iterdir()) == []

    register_user(client, 'mallory', 'mallory@example.com')
    res = client.post(url, headers=bearer(login(client, 'mallory')), content_type='multipart/form-data',
                      data={'image': (io.BytesIO(b'x'), 'x.png')})
    assert res.status_code == 403

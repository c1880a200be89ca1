from app.version import API_PREFIX


def test_cart_flow(client, headers, menu):
    c = headers['customer']
    empty = client.get(f'{API_PREFIX}/cart', headers=c)
    assert empty.status_code == 200
    assert empty.get_json()['data']['cart']['items'] == []

    added = client.post(
        f'{API_PREFIX}/cart/items',
        json={'product_id': menu['A'].id, 'quantity': 2, 'notes': 'no salt'},
        headers=c,
    )
    assert added.status_code == 200
    cart = added.get_json()['data']['cart']
    assert cart['total'] == 10.0
    item_id = cart['items'][0]['id']

    updated = client.put(f'{API_PREFIX}/cart/items/{item_id}', json={'quantity': 3}, headers=c)
    line = updated.get_json()['data']['cart']['items'][0]
    assert line['quantity'] == 3
    assert line['notes'] == 'no salt'

    cleared_note = client.put(
        f'{API_PREFIX}/cart/items/{item_id}', json={'quantity': 3, 'notes': None}, headers=c
    )
    assert cleared_note.get_json()['data']['cart']['items'][0]['notes'] is None

    removed = client.delete(f'{API_PREFIX}/cart/items/{item_id}', headers=c)
    assert removed.status_code == 200
    assert removed.get_json()['data']['cart']['items'] == []


def test_clear_cart(client, headers, menu):
    c = headers['customer']
    client.post(f'{API_PREFIX}/cart/items', json={'product_id': menu['A'].id}, headers=c)
    client.post(f'{API_PREFIX}/cart/items', json={'product_id': menu['B'].id}, headers=c)
    resp = client.delete(f'{API_PREFIX}/cart', headers=c)
    assert resp.status_code == 200
    assert resp.get_json()['data']['cart']['item_count'] == 0


def test_add_unavailable_product(client, headers, menu):
    resp = client.post(f'{API_PREFIX}/cart/items', json={'product_id': menu['off'].id}, headers=headers['customer'])
    assert resp.status_code == 400
    assert resp.get_json()['message'] == 'Product not available'


def test_add_rejects_bad_quantity(client, headers, menu):
    resp = client.post(
        f'{API_PREFIX}/cart/items',
        json={'product_id': menu['A'].id, 'quantity': 0},
        headers=headers['customer'],
    )
    assert resp.status_code == 400
    assert resp.get_json()['details']['errors'][0]['loc'] == ['quantity']


def test_unknown_item(client, headers, menu):
    c = headers['customer']
    client.get(f'{API_PREFIX}/cart', headers=c)
    resp = client.delete(f'{API_PREFIX}/cart/items/999', headers=c)
    assert resp.status_code == 404
    assert resp.get_json()['details'] == {'kind': 'not_found', 'item_id': 999}

from portal.messaging import preview


def _open(client, *members):
    return client.post('/api/conversations', json={'members': list(members)})


def test_open_conversation_is_idempotent(client):
    first = _open(client, 'ana@example.com', 'ben@example.com').get_json()
    second = _open(client, 'BEN@example.com', 'ana@example.com').get_json()

    assert first['id'] == second['id']
    assert first['members'] == ['ana@example.com', 'ben@example.com']


def test_conversation_needs_two_members(client):
    resp = _open(client, 'ana@example.com', 'ana@example.com')

    assert resp.status_code == 400


def test_list_conversations_for_member(client):
    _open(client, 'ana@example.com', 'ben@example.com')
    _open(client, 'ben@example.com', 'cleo@example.com')

    listed = client.get('/api/conversations/ana@example.com').get_json()

    assert len(listed) == 1
    assert 'ben@example.com' in listed[0]['members']


def test_send_and_list_messages(client):
    conversation_id = _open(client, 'ana@example.com', 'ben@example.com').get_json()['id']
    text = 'Hello! ' * 20

    resp = client.post('/api/messages', json={'conversationId': conversation_id, 'sender': 'ana@example.com', 'text': text})
    assert resp.status_code == 200
    client.post('/api/messages', json={'conversationId': conversation_id, 'sender': 'ben@example.com', 'text': 'Hi'})

    messages = client.get(f'/api/messages/{conversation_id}').get_json()
    assert [m['sender'] for m in messages] == ['ana@example.com', 'ben@example.com']
    assert messages[0]['text'] == text

    conversation = client.get('/api/conversations/ana@example.com').get_json()[0]
    assert conversation['lastMessage'] == 'Hi'


def test_send_message_validation(client):
    conversation_id = _open(client, 'ana@example.com', 'ben@example.com').get_json()['id']

    assert client.post('/api/messages', json={'sender': 'ana@example.com', 'text': 'x'}).status_code == 400
    resp = client.post('/api/messages', json={'conversationId': conversation_id, 'sender': 'eve@example.com', 'text': 'x'})
    assert resp.status_code == 400
    resp = client.post('/api/messages', json={'conversationId': 999, 'sender': 'ana@example.com', 'text': 'x'})
    assert resp.status_code == 404


def test_preview_truncates_long_text():
    assert preview('short') == 'short'
    assert preview('x' * 51) == 'x' * 50 + '...'


def test_send_message_rejects_non_text_body(client):
    conversation_id = _open(client, 'ana@example.com', 'ben@example.com').get_json()['id']

    for payload in ({'text': 5}, {'text': ['hi']}, {'sender': 42, 'text': 'hi'}):
        body = dict({'conversationId': conversation_id, 'sender': 'ana@example.com'}, **payload)
        resp = client.post('/api/messages', json=body)
        assert resp.status_code == 400
    assert client.get(f'/api/messages/{conversation_id}').get_json() == []

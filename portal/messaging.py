from models import db, Conversation, Message, utcnow
from flask import Blueprint, jsonify, request, current_app
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import BadRequest, NotFound

from portal.user_client import text_field

messaging = Blueprint('messaging', __name__)

PREVIEW_LENGTH = 50


def preview(text):
    return text if len(text) <= PREVIEW_LENGTH else text[:PREVIEW_LENGTH] + '...'


@messaging.route('/api/conversations/<email>', methods=['GET'])
def list_conversations(email):
    email = email.strip().lower()
    conversations = Conversation.query.order_by(Conversation.last_message_time.desc(), Conversation.id.desc()).all()
    return jsonify([c.to_dict() for c in conversations if email in c.members])


@messaging.route('/api/conversations', methods=['POST'])
def open_conversation():
    """Return the conversation between exactly these members, creating it if needed."""
    members = (request.get_json(silent=True) or {}).get('members') or []
    if not isinstance(members, list):
        raise BadRequest('Members must be a list of emails')
    members = sorted({str(m).strip().lower() for m in members if str(m).strip()})
    if len(members) < 2:
        raise BadRequest('A conversation needs at least two members')

    key = Conversation.key_for(members)
    conversation = Conversation.query.filter_by(members_key=key).first()
    if conversation is None:
        conversation = Conversation(members=members, members_key=key)
        db.session.add(conversation)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            conversation = Conversation.query.filter_by(members_key=key).first()
        else:
            current_app.logger.info('Conversation %s opened', conversation.id)

    return jsonify(conversation.to_dict())


@messaging.route('/api/messages/<int:conversation_id>', methods=['GET'])
def list_messages(conversation_id):
    messages = Message.query.filter_by(conversation_id=conversation_id).order_by(Message.created_at, Message.id).all()
    return jsonify([m.to_dict() for m in messages])


@messaging.route('/api/messages', methods=['POST'])
def send_message():
    data = request.get_json(silent=True) or {}
    sender = text_field(data, 'sender').lower()
    text = data.get('text')
    if not data.get('conversationId') or not sender or not isinstance(text, str) or not text.strip():
        raise BadRequest('conversationId, sender and text are required')

    try:
        conversation_id = int(data['conversationId'])
    except (TypeError, ValueError):
        raise BadRequest('Invalid conversationId')
    conversation = db.session.get(Conversation, conversation_id)
    if conversation is None:
        raise NotFound('Conversation not found')
    if sender not in conversation.members:
        raise BadRequest('Sender is not a member of this conversation')

    message = Message(conversation_id=conversation.id, sender=sender, text=text)
    conversation.last_message = preview(text)
    conversation.last_message_time = utcnow()
    db.session.add(message)
    db.session.commit()
    return jsonify(message.to_dict())

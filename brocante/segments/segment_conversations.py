from __future__ import annotations

from datetime import datetime

from flask import Blueprint, jsonify
from sqlalchemy import func

from brocante.extensions import db
from brocante.models import Conversation, ConversationParticipant, Listing, Message, User
from brocante.schemas import ConversationCreateBody, MessageCreateBody, parse_body
from brocante.utils.auth import require_user

conversations_bp = Blueprint("conversations_bp", __name__, url_prefix="/api/conversations")


def _other_participant(conv: Conversation, user_id: int) -> User | None:
    for p in conv.participants:
        if int(p.user_id) != int(user_id):
            return p.user
    return None


def _conversation_payload(conv: Conversation, viewer_id: int, *, last_message: Message | None = None, unread: int = 0) -> dict:
    other = _other_participant(conv, viewer_id)
    return {
        "id": conv.id,
        "listing": conv.listing.to_summary_dict() if conv.listing else None,
        "participants": [p.user.to_public_dict() for p in conv.participants if p.user],
        "other_participant": other.to_public_dict() if other else None,
        "last_message": last_message.to_dict() if last_message else None,
        "unread_count": int(unread),
        "created_at": conv.created_at.isoformat() if conv.created_at else None,
        "updated_at": conv.updated_at.isoformat() if conv.updated_at else None,
    }


def _conversation_for_participant(conversation_id: int, user, verb: str):
    conv = db.session.get(Conversation, conversation_id)
    if not conv:
        return None, (jsonify({"ok": False, "message": "Conversation not found"}), 404)
    if int(user.id) not in conv.participant_ids():
        return None, (jsonify({"ok": False, "message": f"You are not allowed to {verb} this conversation"}), 403)
    return conv, None


@conversations_bp.get("")
def my_conversations():
    u, err = require_user()
    if err:
        return err
    uid = int(u.id)
    rows = (
        Conversation.query.join(ConversationParticipant)
        .filter(ConversationParticipant.user_id == uid)
        .order_by(Conversation.updated_at.desc(), Conversation.id.desc())
        .all()
    )
    conv_ids = [int(c.id) for c in rows]
    unread = {}
    if conv_ids:
        unread = dict(
            db.session.query(Message.conversation_id, func.count(Message.id))
            .filter(
                Message.conversation_id.in_(conv_ids),
                Message.sender_id != uid,
                Message.read.is_(False),
            )
            .group_by(Message.conversation_id)
            .all()
        )
    items = []
    for conv in rows:
        last = (
            Message.query.filter_by(conversation_id=conv.id)
            .order_by(Message.created_at.desc(), Message.id.desc())
            .first()
        )
        items.append(_conversation_payload(conv, uid, last_message=last, unread=unread.get(conv.id, 0)))
    return jsonify({"ok": True, "items": items}), 200


@conversations_bp.post("")
def start_conversation():
    u, err = require_user()
    if err:
        return err
    data, err = parse_body(ConversationCreateBody)
    if err:
        return err

    uid = int(u.id)
    seller_id = int(data.seller_id)
    if seller_id == uid:
        return jsonify({"ok": False, "message": "You cannot message yourself"}), 400
    listing = db.session.get(Listing, int(data.listing_id))
    if not listing:
        return jsonify({"ok": False, "message": "Listing not found"}), 404
    if not db.session.get(User, seller_id):
        return jsonify({"ok": False, "message": "Seller not found"}), 404

    candidates = (
        Conversation.query.join(ConversationParticipant)
        .filter(Conversation.listing_id == listing.id, ConversationParticipant.user_id == uid)
        .all()
    )
    for conv in candidates:
        if {uid, seller_id} <= conv.participant_ids():
            return jsonify({"ok": True, "conversation": _conversation_payload(conv, uid)}), 200

    conv = Conversation(listing_id=int(listing.id))
    conv.participants = [
        ConversationParticipant(user_id=uid),
        ConversationParticipant(user_id=seller_id),
    ]
    db.session.add(conv)
    db.session.commit()
    return jsonify({"ok": True, "conversation": _conversation_payload(conv, uid)}), 201


@conversations_bp.get("/<int:conversation_id>/messages")
def list_messages(conversation_id: int):
    u, err = require_user()
    if err:
        return err
    conv, err = _conversation_for_participant(conversation_id, u, "view")
    if err:
        return err

    rows = (
        Message.query.filter_by(conversation_id=conv.id)
        .order_by(Message.created_at.asc(), Message.id.asc())
        .all()
    )
    payload = [m.to_dict() for m in rows]

    # Serialised first: the caller sees which messages were unread until now.
    Message.query.filter(
        Message.conversation_id == conv.id,
        Message.sender_id != int(u.id),
        Message.read.is_(False),
    ).update({Message.read: True}, synchronize_session=False)
    db.session.commit()
    return jsonify({"ok": True, "items": payload}), 200


@conversations_bp.post("/<int:conversation_id>/messages")
def send_message(conversation_id: int):
    u, err = require_user()
    if err:
        return err
    conv, err = _conversation_for_participant(conversation_id, u, "post in")
    if err:
        return err
    data, err = parse_body(MessageCreateBody)
    if err:
        return err

    now = datetime.utcnow()
    msg = Message(
        conversation_id=int(conv.id),
        sender_id=int(u.id),
        listing_id=conv.listing_id,
        content=data.content,
        read=False,
        created_at=now,
    )
    conv.updated_at = now
    db.session.add(msg)
    db.session.commit()
    return jsonify({"ok": True, "message": msg.to_dict()}), 201

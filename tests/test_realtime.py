from flask_jwt_extended import create_access_token, decode_token

from claimkin.realtime import socketio
from claimkin.utils.cache import revoke_jti


def _token(app):
    with app.app_context():
        return create_access_token(identity="admin-1")


def test_socket_needs_a_token(app):
    client = socketio.test_client(app)
    assert not client.is_connected()


def test_socket_joins_campaign_room(app):
    client = socketio.test_client(app, auth={"token": _token(app)})
    assert client.is_connected()
    client.emit("join_campaign", {"campaign_id": "c1"})
    events = {e["name"]: e["args"][0] for e in client.get_received()}
    assert events["joined"] == {"room": "campaign:c1"}
    client.disconnect()


def test_revoked_token_cannot_connect(app):
    token = _token(app)
    with app.app_context():
        revoke_jti(decode_token(token)["jti"], 3600)
    client = socketio.test_client(app, auth={"token": token})
    assert not client.is_connected()

from claimkin import create_app
from claimkin.realtime import socketio
import os

app = create_app()

if __name__ == "__main__":
    port = int(os.getenv("PORT", 5050))
    socketio.run(
        app,
        host=os.getenv("HOST", "127.0.0.1"),
        port=port,
        debug=False,
        use_reloader=False,
        log_output=True,
    )

# Local setup:
# docker compose --env-file .env.docker up -d     (postgres + redis)
# alembic upgrade head
# python scripts/seed.py
# PORT=5050 python run.py
# rq worker default                               (only with USE_EMAIL_QUEUE=1)

from focus_together import create_app, db, socketio
import focus_together.models  # noqa: F401

app = create_app()

if __name__ == '__main__':
    with app.app_context():
        db.create_all()
    # Use SocketIO server so the /ws namespace is served alongside HTTP
    socketio.run(app, debug=True)

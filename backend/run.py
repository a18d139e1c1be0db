import signal

from clickrank import create_app, dispose_engine, socketio

app = create_app()


def _terminate(signum, frame):
    raise SystemExit(0)


if __name__ == '__main__':
    signal.signal(signal.SIGTERM, _terminate)
    # Use SocketIO server to enable websockets in dev
    try:
        socketio.run(app, debug=True)
    finally:
        dispose_engine(app)

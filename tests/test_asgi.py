from socketio import ASGIApp


def test_socketio_wraps_django(settings):
    from config.asgi import application

    assert isinstance(application, ASGIApp)
    assert application.engineio_path == f"/{settings.SOCKETIO_PATH.strip('/')}/"
    assert application.other_asgi_app is not None

import pytest

from flask import Flask, jsonify, request

from kvsession.ext import KVSession, current_store, get_session
from kvsession.tests.util import dict_backend


@pytest.fixture()
def backend():
    return dict_backend()


@pytest.fixture()
def app(backend):
    mock_backend, _ = backend
    app = Flask('test_kvsession_app')
    app.config['KVSESSION_KEY_PAIRS'] = \
        'newauthkeynewauthkeynewauthkey12:0123456789abcdef,oldauthkey'
    app.config['KVSESSION_COOKIE_NAME'] = 'foosession'
    app.config['KVSESSION_MAX_AGE'] = '600'
    KVSession(app, backend=mock_backend)

    @app.route('/visit')
    def visit():
        session = get_session()
        session.values['visits'] = session.values.get('visits', 0) + 1
        return jsonify(visits=session.values['visits'], new=session.is_new)

    @app.route('/peek')
    def peek():
        session = get_session()
        return jsonify(values=session.values, new=session.is_new)

    @app.route('/logout')
    def logout():
        response = jsonify(ok=True)
        current_store().delete(request, response, get_session())
        return response

    return app


@pytest.fixture()
def client(app):
    return app.test_client()

from fccli.session import Session, CWD_UPDATE, TRANSACTION_UPDATE


def test_defaults():
    session = Session()
    assert session.cwd == '/'
    assert session.transaction_token is None
    assert not session.in_transaction


def test_set_cwd_normalizes():
    session = Session()
    session.set_cwd('/a//b/../c/')
    assert session.cwd == '/a/c'


def test_listeners():
    session = Session(cwd='/a')
    events = []
    session.subscribe(lambda event, value: events.append((event, value)))

    session.set_cwd('/b')
    session.set_transaction_token('tx:123')
    assert session.in_transaction
    session.set_transaction_token(None)

    assert events == [
        (CWD_UPDATE, '/b'),
        (TRANSACTION_UPDATE, 'tx:123'),
        (TRANSACTION_UPDATE, None),
    ]


def test_unsubscribe():
    session = Session()
    events = []

    def listener(event, value):
        events.append((event, value))

    session.subscribe(listener)
    session.set_cwd('/x')
    session.unsubscribe(listener)
    # unsubscribing twice is harmless
    session.unsubscribe(listener)
    session.set_cwd('/y')
    assert events == [(CWD_UPDATE, '/x')]

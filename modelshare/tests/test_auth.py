import unittest
from unittest.mock import MagicMock

from modelshare.auth import AuthError, FirebaseAuthClient, InMemoryAuthClient


def _response(status_code, body):
    response = MagicMock(status_code=status_code)
    response.json.return_value = body
    return response


class InMemoryAuthClientTests(unittest.TestCase):
    def setUp(self):
        self.auth = InMemoryAuthClient()

    def test_sign_up_then_sign_in(self):
        created = self.auth.sign_up("Ada@Example.com", "secret1")
        self.auth.sign_out()
        signed_in = self.auth.sign_in("ada@example.com", "secret1")
        self.assertEqual(created.uid, signed_in.uid)
        self.assertEqual(self.auth.current_user.email, "ada@example.com")

    def test_duplicate_account(self):
        self.auth.sign_up("ada@example.com", "secret1")
        with self.assertRaises(AuthError) as ctx:
            self.auth.sign_up("ada@example.com", "secret2")
        self.assertEqual(str(ctx.exception), "EMAIL_EXISTS")

    def test_bad_credentials(self):
        self.auth.sign_up("ada@example.com", "secret1")
        with self.assertRaises(AuthError) as ctx:
            self.auth.sign_in("ada@example.com", "wrong-password")
        self.assertEqual(str(ctx.exception), "INVALID_LOGIN_CREDENTIALS")

    def test_weak_password(self):
        with self.assertRaises(AuthError):
            self.auth.sign_up("ada@example.com", "123")

    def test_listener_receives_current_then_transitions(self):
        events = []
        unsubscribe = self.auth.on_auth_state_changed(events.append)
        account = self.auth.sign_up("ada@example.com", "secret1")
        self.auth.sign_out()
        unsubscribe()
        self.auth.sign_in("ada@example.com", "secret1")

        self.assertEqual(events, [None, account, None])

    def test_failing_listener_does_not_break_sign_in(self):
        def broken(_user):
            raise RuntimeError("boom")

        self.auth.on_auth_state_changed(broken)
        account = self.auth.sign_up("ada@example.com", "secret1")
        self.assertEqual(self.auth.current_user, account)


class FirebaseAuthClientTests(unittest.TestCase):
    def setUp(self):
        self.session = MagicMock()
        self.auth = FirebaseAuthClient("api-key", session=self.session)

    def test_sign_in_success(self):
        self.session.post.return_value = _response(
            200,
            {
                "localId": "uid-1",
                "email": "ada@example.com",
                "idToken": "id",
                "refreshToken": "refresh",
            },
        )
        events = []
        self.auth.on_auth_state_changed(events.append)

        account = self.auth.sign_in("ada@example.com", "secret1")

        self.assertEqual(account.uid, "uid-1")
        self.assertEqual(account.refresh_token, "refresh")
        self.assertEqual(events, [None, account])
        args, kwargs = self.session.post.call_args
        self.assertTrue(args[0].endswith("accounts:signInWithPassword"))
        self.assertEqual(kwargs["params"], {"key": "api-key"})
        self.assertTrue(kwargs["json"]["returnSecureToken"])

    def test_error_message_is_verbatim(self):
        self.session.post.return_value = _response(
            400, {"error": {"code": 400, "message": "EMAIL_EXISTS"}}
        )
        with self.assertRaises(AuthError) as ctx:
            self.auth.sign_up("ada@example.com", "secret1")
        self.assertEqual(str(ctx.exception), "EMAIL_EXISTS")
        self.assertIsNone(self.auth.current_user)

    def test_resume_from_refresh_token(self):
        session = MagicMock()
        session.post.side_effect = [
            _response(200, {"id_token": "id", "user_id": "uid-9", "refresh_token": "r2"}),
            _response(200, {"users": [{"email": "grace@example.com"}]}),
        ]

        auth = FirebaseAuthClient("api-key", refresh_token="r1", session=session)

        self.assertEqual(auth.current_user.uid, "uid-9")
        self.assertEqual(auth.current_user.email, "grace@example.com")
        self.assertEqual(auth.current_user.refresh_token, "r2")

    def test_failed_resume_leaves_signed_out(self):
        session = MagicMock()
        session.post.return_value = _response(
            400, {"error": {"message": "TOKEN_EXPIRED"}}
        )
        auth = FirebaseAuthClient("api-key", refresh_token="stale", session=session)
        self.assertIsNone(auth.current_user)

    def test_requires_api_key(self):
        with self.assertRaises(ValueError):
            FirebaseAuthClient("")


if __name__ == "__main__":
    unittest.main()

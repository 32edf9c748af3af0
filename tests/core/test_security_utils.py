from src.core.utils import security


def test_generate_opaque_token_has_requested_entropy() -> None:
    token = security.generate_opaque_token(32)

    # 32 bytes of base64url without padding
    assert len(token) == 43
    assert security.generate_opaque_token(32) != token


def test_mask_token() -> None:
    assert security.mask_token("abcdefghijkl") == "abcdef***"
    assert security.mask_token("abc") == "***"
    assert security.mask_token(None) == "***"

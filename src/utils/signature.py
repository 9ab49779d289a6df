import hashlib
import hmac

SIGNATURE_PREFIX = "sha256="


def compute_signature(raw_body: bytes, secret: str) -> str:
    """生のリクエストボディから X-Hub-Signature-256 形式の署名を計算"""
    digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()
    return SIGNATURE_PREFIX + digest


def verify_signature(raw_body: bytes, secret: str, provided_signature: str) -> bool:
    """Webhook署名を検証

    パース済みJSONを再シリアライズすると署名が一致しなくなるため、
    必ず受信したままのボディを渡すこと。

    Args:
        raw_body: 受信したリクエストボディ（未加工のバイト列）
        secret: 共有シークレット
        provided_signature: X-Hub-Signature-256 ヘッダの値

    Returns:
        bool: 署名が一致すればTrue。シークレットまたは署名が空の場合はFalse
    """
    if not secret or not provided_signature:
        return False
    if raw_body is None:
        return False

    expected = compute_signature(raw_body, secret)
    return hmac.compare_digest(expected.encode("utf-8"), provided_signature.encode("utf-8"))

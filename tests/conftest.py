import pytest
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.primitives.serialization import Encoding, NoEncryption, PrivateFormat, PublicFormat

CLIENT_EMAIL = "storage@test-project.iam.gserviceaccount.com"
BUCKET = "bkt"


def _private_pem(key) -> str:
    return key.private_bytes(Encoding.PEM, PrivateFormat.PKCS8, NoEncryption()).decode()


@pytest.fixture(scope="session")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key(rsa_key) -> str:
    return _private_pem(rsa_key)


@pytest.fixture(scope="session")
def public_key(rsa_key) -> str:
    return rsa_key.public_key().public_bytes(Encoding.PEM, PublicFormat.SubjectPublicKeyInfo).decode()


@pytest.fixture(scope="session")
def ec_private_key() -> str:
    return _private_pem(ec.generate_private_key(ec.SECP256R1()))


@pytest.fixture()
def client_email():
    return CLIENT_EMAIL


@pytest.fixture()
def bucket():
    return BUCKET

# Copyright 2026 The Sigstore Authors
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#      http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Test fixtures to share between tests. Not part of the public API."""

import datetime

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509 import oid
import pgpy
from pgpy import constants as pgpy_constants
import pytest

from tests import test_support


def _new_key(name: str) -> pgpy.PGPKey:
    key = pgpy.PGPKey.new(pgpy_constants.PubKeyAlgorithm.RSAEncryptOrSign, 2048)
    uid = pgpy.PGPUID.new(name, email=f"{name.lower()}@example.com")
    key.add_uid(
        uid,
        usage={
            pgpy_constants.KeyFlags.Sign,
            pgpy_constants.KeyFlags.Certify,
        },
        hashes=[pgpy_constants.HashAlgorithm.SHA256],
        ciphers=[pgpy_constants.SymmetricKeyAlgorithm.AES256],
        compression=[pgpy_constants.CompressionAlgorithm.Uncompressed],
    )
    return key


# Key generation is slow, so keys are shared. Tests must not alter them.
@pytest.fixture(scope="session")
def release_key():
    """An OpenPGP key that signs releases."""
    return _new_key("Releaser")


@pytest.fixture(scope="session")
def other_key():
    """An OpenPGP key unrelated to `release_key`."""
    return _new_key("Stranger")


@pytest.fixture(scope="session")
def release_key_with_subkey():
    """An OpenPGP key which signs releases with a dedicated subkey."""
    key = _new_key("Subkeyed")
    subkey = pgpy.PGPKey.new(
        pgpy_constants.PubKeyAlgorithm.RSAEncryptOrSign, 2048
    )
    key.add_subkey(subkey, usage={pgpy_constants.KeyFlags.Sign})
    return key


@pytest.fixture(scope="session")
def release_signature(release_key):
    """Armored detached signature of `KNOWN_ARTIFACT` by `release_key`."""
    return str(release_key.sign(test_support.KNOWN_ARTIFACT)).encode("ascii")


@pytest.fixture(scope="session")
def release_public_key(release_key):
    """The armored public block of `release_key`, as served by keyservers."""
    return str(release_key.pubkey).encode("ascii")


@pytest.fixture(scope="session")
def sigstore_signing_key():
    """An ephemeral ECDSA key, like the ones keyless signers use."""
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture(scope="session")
def sigstore_signing_certificate(sigstore_signing_key):
    """A self-signed leaf certificate for `sigstore_signing_key`.

    It does not chain to any Fulcio instance, so tests using it must not rely
    on certificate validation.
    """
    name = x509.Name(
        [x509.NameAttribute(oid.NameOID.COMMON_NAME, "release-signer")]
    )
    now = datetime.datetime.now(datetime.timezone.utc)
    return (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(sigstore_signing_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(minutes=5))
        .not_valid_after(now + datetime.timedelta(minutes=10))
        .add_extension(
            x509.BasicConstraints(ca=False, path_length=None), critical=True
        )
        .sign(private_key=sigstore_signing_key, algorithm=hashes.SHA256())
    )

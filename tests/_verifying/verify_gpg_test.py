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

"""Tests for verification of OpenPGP detached signatures."""

import re
from unittest import mock

import pgpy
from pgpy import constants as pgpy_constants
from pgpy.packet import packets as pgpy_packets
import pytest
import requests

from release_signatures._trust import keyserver
from release_signatures._verifying import verify_gpg as gpg
from release_signatures._verifying import verifying
from tests import test_support


_KEYSERVER = "https://keys.example.com"


def _options(**kwargs):
    return verifying.VerifyOptions(keyserver_url=_KEYSERVER, **kwargs)


def _corrupt_armor(signature: bytes) -> bytes:
    lines = signature.decode("ascii").splitlines()
    body = [i for i, line in enumerate(lines) if line and ":" not in line]
    lines[body[len(body) // 2]] = "!!!! not base64 !!!!"
    return "\n".join(lines).encode("ascii")


class TestExtractKeyId:
    def test_extracts_issuer(self, release_key, release_signature):
        key_id = gpg.extract_key_id(release_signature)

        assert key_id == release_key.fingerprint.keyid
        assert re.fullmatch(r"[0-9A-F]{16}", key_id)

    def test_is_deterministic(self, release_signature):
        first = gpg.extract_key_id(release_signature)
        second = gpg.extract_key_id(release_signature)

        assert first == second
        assert len(first) == 16

    def test_different_signers(self, release_signature, other_key):
        other_signature = str(other_key.sign(test_support.KNOWN_ARTIFACT))

        assert gpg.extract_key_id(release_signature) != gpg.extract_key_id(
            other_signature.encode("ascii")
        )

    @pytest.mark.parametrize(
        "signature",
        [
            b"",
            b"not armored at all",
            b"\x89PNG\r\n\x1a\n",
            b"-----BEGIN PGP SIGNATURE-----\n\n-----END PGP SIGNATURE-----\n",
        ],
    )
    def test_rejects_invalid_input(self, signature):
        with pytest.raises(gpg.KeyIDExtractionError):
            gpg.extract_key_id(signature)

    def test_rejects_truncated_armor(self, release_signature):
        truncated = release_signature.splitlines(keepends=True)[:-1]

        with pytest.raises(
            gpg.KeyIDExtractionError, match="failed to decode signature"
        ):
            gpg.extract_key_id(b"".join(truncated))

    def test_rejects_corrupted_armor(self, release_signature):
        with pytest.raises(gpg.KeyIDExtractionError):
            gpg.extract_key_id(_corrupt_armor(release_signature))

    def test_no_signature_packet(self):
        uncompressed = pgpy_constants.CompressionAlgorithm.Uncompressed
        message = pgpy.PGPMessage.new("hello", compression=uncompressed)
        armored = str(message).encode("ascii")

        with pytest.raises(gpg.NoKeyIDFoundError, match="no key ID found"):
            gpg.extract_key_id(armored)

    def test_first_issuer_subpacket_wins(self, release_signature):
        first = mock.Mock(issuer="a1b2c3d4e5f60718")
        second = mock.Mock(issuer="0000000000000042")
        packet = mock.create_autospec(pgpy_packets.SignatureV4, instance=True)
        packet.subpackets = {"Issuer": [first, second]}

        def _parse(data):
            del data[:]
            return packet

        with mock.patch.object(gpg.pgpy_packet, "Packet", side_effect=_parse):
            key_id = gpg.extract_key_id(release_signature)

        assert key_id == "A1B2C3D4E5F60718"


class TestCheckSignature:
    def test_valid_signature(self, release_key, release_signature):
        signer = gpg.check_signature(
            test_support.KNOWN_ARTIFACT, release_signature, [release_key.pubkey]
        )

        assert signer.fingerprint == release_key.fingerprint

    def test_wrong_artifact(self, release_key, release_signature):
        with pytest.raises(gpg.SignatureCheckError, match="invalid signature"):
            gpg.check_signature(
                test_support.ANOTHER_ARTIFACT,
                release_signature,
                [release_key.pubkey],
            )

    def test_unknown_issuer(self, other_key, release_signature):
        with pytest.raises(gpg.SignatureCheckError, match="unknown issuer"):
            gpg.check_signature(
                test_support.KNOWN_ARTIFACT,
                release_signature,
                [other_key.pubkey],
            )

    def test_signing_subkey(self, release_key_with_subkey):
        subkey = next(iter(release_key_with_subkey.subkeys.values()))
        signature = str(subkey.sign(test_support.KNOWN_ARTIFACT)).encode()

        signer = gpg.check_signature(
            test_support.KNOWN_ARTIFACT,
            signature,
            [release_key_with_subkey.pubkey],
        )

        assert signer.fingerprint == release_key_with_subkey.fingerprint


class TestVerifier:
    def test_can_verify_only_gpg(self):
        verifier = gpg.Verifier(session=test_support.keyserver_session())

        assert verifier.can_verify(verifying.SignatureScheme.GPG)
        assert not verifier.can_verify(verifying.SignatureScheme.SIGSTORE)
        assert not verifier.can_verify(verifying.SignatureScheme.MINISIGN)
        assert not verifier.can_verify(verifying.SignatureScheme.UNKNOWN)

    def test_round_trip(
        self, release_key, release_signature, release_public_key
    ):
        session = test_support.keyserver_session(release_public_key)
        verifier = gpg.Verifier(session=session)

        result = verifier.verify(
            test_support.KNOWN_ARTIFACT, release_signature, _options()
        )

        assert result.verified
        assert result.error is None
        assert result.key_id == release_key.fingerprint.keyid
        assert re.fullmatch(r"[0-9A-F]{16}", result.key_id)
        session.get.assert_called_once_with(
            f"{_KEYSERVER}/vks/v1/by-keyid/{result.key_id}",
            timeout=30.0,
            stream=True,
        )

    def test_default_keyserver_and_options(
        self, release_key, release_signature, release_public_key
    ):
        session = test_support.keyserver_session(release_public_key)
        verifier = gpg.Verifier(session=session)

        result = verifier.verify(test_support.KNOWN_ARTIFACT, release_signature)

        assert result.verified
        key_id = release_key.fingerprint.keyid
        session.get.assert_called_once_with(
            f"https://keys.openpgp.org/vks/v1/by-keyid/{key_id}",
            timeout=30.0,
            stream=True,
        )

    def test_timeout_is_forwarded(self, release_signature, release_public_key):
        session = test_support.keyserver_session(release_public_key)
        verifier = gpg.Verifier(session=session)

        verifier.verify(
            test_support.KNOWN_ARTIFACT,
            release_signature,
            _options(timeout=2.5),
        )

        assert session.get.call_args.kwargs["timeout"] == 2.5

    def test_subkey_signature_reports_primary_key(
        self, release_key_with_subkey
    ):
        subkey = next(iter(release_key_with_subkey.subkeys.values()))
        signature = str(subkey.sign(test_support.KNOWN_ARTIFACT)).encode()
        session = test_support.keyserver_session(
            str(release_key_with_subkey.pubkey).encode()
        )
        verifier = gpg.Verifier(session=session)

        result = verifier.verify(
            test_support.KNOWN_ARTIFACT, signature, _options()
        )

        assert result.verified
        assert result.key_id == release_key_with_subkey.fingerprint.keyid
        assert session.get.call_args.args[0].endswith(
            subkey.fingerprint.keyid
        )

    def test_tampered_artifact(
        self, release_key, release_signature, release_public_key
    ):
        session = test_support.keyserver_session(release_public_key)
        verifier = gpg.Verifier(session=session)

        result = verifier.verify(
            test_support.ANOTHER_ARTIFACT, release_signature, _options()
        )

        assert not result.verified
        assert result.key_id == release_key.fingerprint.keyid
        assert str(result.error).startswith("signature verification failed")
        assert isinstance(result.error.__cause__, gpg.SignatureCheckError)

    def test_keyserver_returns_other_key(
        self, release_key, other_key, release_signature
    ):
        session = test_support.keyserver_session(
            str(other_key.pubkey).encode()
        )
        verifier = gpg.Verifier(session=session)

        result = verifier.verify(
            test_support.KNOWN_ARTIFACT, release_signature, _options()
        )

        assert not result.verified
        assert result.key_id == release_key.fingerprint.keyid
        assert "unknown issuer" in str(result.error)

    def test_key_not_found(self, release_key, release_signature):
        session = test_support.keyserver_session(b"Not Found", 404)
        verifier = gpg.Verifier(session=session)

        result = verifier.verify(
            test_support.KNOWN_ARTIFACT, release_signature, _options()
        )

        key_id = release_key.fingerprint.keyid
        assert not result.verified
        assert result.key_id == key_id
        assert str(result.error) == (
            f"failed to fetch key {key_id}: "
            "keyserver returned non-OK status: 404"
        )
        assert isinstance(
            result.error.__cause__, keyserver.KeyserverStatusError
        )

    def test_keyserver_timeout(self, release_key, release_signature):
        session = test_support.keyserver_session()
        session.get.side_effect = requests.Timeout("read timed out")
        verifier = gpg.Verifier(session=session)

        result = verifier.verify(
            test_support.KNOWN_ARTIFACT, release_signature, _options()
        )

        assert not result.verified
        assert result.key_id == release_key.fingerprint.keyid
        assert isinstance(
            result.error.__cause__, keyserver.KeyserverTransportError
        )

    def test_keyserver_serves_garbage(self, release_key, release_signature):
        session = test_support.keyserver_session(b"<html>oops</html>")
        verifier = gpg.Verifier(session=session)

        result = verifier.verify(
            test_support.KNOWN_ARTIFACT, release_signature, _options()
        )

        assert not result.verified
        assert result.key_id == release_key.fingerprint.keyid
        assert isinstance(result.error.__cause__, keyserver.KeyParseError)

    @pytest.mark.parametrize(
        "signature", [b"", b"garbage", b"-----BEGIN PGP SIGNATURE-----\n"]
    )
    def test_invalid_signature_skips_keyserver(self, signature):
        session = test_support.keyserver_session()
        verifier = gpg.Verifier(session=session)

        result = verifier.verify(
            test_support.KNOWN_ARTIFACT, signature, _options()
        )

        assert not result.verified
        assert result.key_id == ""
        assert str(result.error).startswith("failed to extract key ID: ")
        session.get.assert_not_called()

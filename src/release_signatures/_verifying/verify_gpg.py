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

"""Verification of ASCII-armored OpenPGP detached signatures.

The signing key is not supplied by the caller. Instead, the issuer key ID is
read from the signature and the matching public key is downloaded from a
keyserver. Whatever key the keyserver returns for that ID is trusted: no
fingerprint pinning or web of trust evaluation takes place.
"""

import logging

import pgpy
from pgpy import packet as pgpy_packet
from pgpy import types as pgpy_types
from pgpy.packet import packets as pgpy_packets
import requests
from typing_extensions import override

from release_signatures._trust import keyserver as keyserver_lib
from release_signatures._verifying import verifying


logger = logging.getLogger(__name__)


class KeyIDExtractionError(ValueError):
    """The signature could not be decoded to look for the issuer."""


class NoKeyIDFoundError(KeyIDExtractionError):
    """No signature packet in the input names its issuer."""

    def __init__(self):
        super().__init__("no key ID found in signature")


class SignatureCheckError(ValueError):
    """The signature does not verify with the downloaded keys."""


def _dearmor(signature: bytes) -> bytearray:
    try:
        text = signature.decode("ascii")
        if not pgpy_types.Armorable.is_armor(text):
            raise ValueError("no armored PGP block")
        return bytearray(pgpy_types.Armorable.ascii_unarmor(text)["body"])
    except Exception as e:
        raise KeyIDExtractionError(f"failed to decode signature: {e}") from e


def extract_key_id(signature: bytes) -> str:
    """Extracts the issuer key ID out of an armored detached signature.

    The packets of the armored block are read in order, and the first version
    4 signature packet with an issuer subpacket names the key.

    Args:
        signature: The ASCII-armored signature.

    Returns:
        The key ID, as 16 uppercase hexadecimal characters.

    Raises:
        KeyIDExtractionError: The input is not armored, or a packet in it
          cannot be read.
        NoKeyIDFoundError: No packet names the issuer.
    """
    data = _dearmor(signature)

    while data:
        remaining = len(data)
        try:
            pkt = pgpy_packet.Packet(data)
        except Exception as e:
            raise KeyIDExtractionError(f"failed to read packet: {e}") from e
        if len(data) >= remaining:
            raise KeyIDExtractionError("failed to read packet: no progress")

        if isinstance(pkt, pgpy_packets.SignatureV4):
            issuers = pkt.subpackets["Issuer"]
            if issuers:
                return str(issuers[0].issuer).upper().zfill(16)

    raise NoKeyIDFoundError()


def _find_signing_key(
    keys: list[pgpy.PGPKey], issuer: str
) -> pgpy.PGPKey | None:
    for key in keys:
        if key.fingerprint.keyid == issuer or issuer in key.subkeys:
            return key
    return None


def check_signature(
    artifact: bytes, signature: bytes, keys: list[pgpy.PGPKey]
) -> pgpy.PGPKey:
    """Checks a detached signature against a set of public keys.

    Args:
        artifact: The signed content.
        signature: The ASCII-armored detached signature.
        keys: Candidate primary keys. The signature must be issued by one of
          them, or by one of their subkeys.

    Returns:
        The primary key that owns the signing key.

    Raises:
        SignatureCheckError: The signature cannot be parsed, its issuer is not
          among `keys`, or it does not match the artifact.
    """
    try:
        sig = pgpy.PGPSignature.from_blob(signature.decode("ascii"))
        issuer = sig.signer
    except Exception as e:
        raise SignatureCheckError(f"malformed signature: {e}") from e

    signing_key = _find_signing_key(keys, issuer)
    if signing_key is None:
        raise SignatureCheckError(f"unknown issuer {issuer}")

    try:
        verification = signing_key.verify(artifact, sig)
    except Exception as e:
        raise SignatureCheckError(str(e)) from e

    if not verification:
        raise SignatureCheckError("invalid signature")
    return signing_key


class Verifier(verifying.Verifier):
    """Verification of OpenPGP detached signatures."""

    scheme = verifying.SignatureScheme.GPG

    def __init__(self, *, session: requests.Session | None = None):
        """Initializes the OpenPGP verifier.

        Args:
            session: HTTP session used to query keyservers. A new one is
              created if missing.
        """
        if session is None:
            session = requests.Session()
        self._keyserver = keyserver_lib.Keyserver(session)

    @override
    def verify(
        self,
        artifact: bytes,
        signature: bytes,
        options: verifying.VerifyOptions | None = None,
    ) -> verifying.VerificationResult:
        if options is None:
            options = verifying.VerifyOptions()
        keyserver = options.keyserver_url or keyserver_lib.DEFAULT_KEYSERVER

        try:
            key_id = extract_key_id(signature)
        except KeyIDExtractionError as e:
            return self._failure(f"failed to extract key ID: {e}", e)

        url = keyserver_lib.key_url(keyserver, key_id)
        try:
            keys = self._keyserver.fetch_keyring(url, timeout=options.timeout)
        except keyserver_lib.KeyFetchError as e:
            return self._failure(
                f"failed to fetch key {key_id}: {e}", e, key_id
            )

        try:
            signing_key = check_signature(artifact, signature, keys)
        except SignatureCheckError as e:
            return self._failure(
                f"signature verification failed: {e}", e, key_id
            )

        signer_id = signing_key.fingerprint.keyid
        logger.info("Verified OpenPGP signature issued by key %s", signer_id)
        return verifying.VerificationResult.success(key_id=signer_id)

    def _failure(
        self, message: str, cause: Exception, key_id: str = ""
    ) -> verifying.VerificationResult:
        logger.info("OpenPGP verification failed: %s", message)
        return verifying.VerificationResult.failure(
            verifying.VerificationError(message, cause), key_id=key_id
        )

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

"""Discovery of OpenPGP public keys on a keyserver.

Keys are looked up by key ID through the Verifying Keyserver (VKS) interface
(https://keys.openpgp.org/about/api), which answers a `GET` on
`/vks/v1/by-keyid/<KEYID>` with the ASCII-armored public key block.
"""

import logging

import pgpy
from pgpy import types as pgpy_types
import requests


logger = logging.getLogger(__name__)


DEFAULT_KEYSERVER = "https://keys.openpgp.org"
KEYSERVER_PATH = "/vks/v1/by-keyid/"

# Responses larger than this are rejected without being parsed.
MAX_KEY_SIZE = 5 * 1024 * 1024

_CHUNK_SIZE = 64 * 1024


class KeyFetchError(ValueError):
    """Base class for errors while obtaining a key from a keyserver."""


class KeyserverTransportError(KeyFetchError):
    """The keyserver could not be reached, or the request timed out."""

    def __init__(self, cause: Exception):
        super().__init__(f"failed to fetch key: {cause}")


class KeyserverStatusError(KeyFetchError):
    """The keyserver answered with a status other than 200 OK.

    Attributes:
        status_code: The HTTP status of the response.
    """

    def __init__(self, status_code: int):
        super().__init__(f"keyserver returned non-OK status: {status_code}")
        self.status_code = status_code


class KeyTooLargeError(KeyFetchError):
    """The keyserver response exceeds `MAX_KEY_SIZE`."""

    def __init__(self):
        super().__init__(f"key exceeds maximum size of {MAX_KEY_SIZE} bytes")


class KeyParseError(KeyFetchError):
    """The response is not an armored OpenPGP key block."""

    def __init__(self, cause: Exception | str):
        super().__init__(f"failed to parse key: {cause}")


class NoKeysFoundError(KeyFetchError):
    """The key block is well formed but holds no public key."""

    def __init__(self):
        super().__init__("no keys found")


def key_url(keyserver: str, key_id: str) -> str:
    """Returns the VKS lookup URL of a key ID on a keyserver.

    The keyserver is used verbatim, so a trailing slash in it is kept.
    """
    return f"{keyserver}{KEYSERVER_PATH}{key_id}"


def parse_keyring(data: bytes) -> list[pgpy.PGPKey]:
    """Parses an ASCII-armored block of public keys.

    Args:
        data: The armored key block.

    Returns:
        The primary public keys in the block, with their subkeys attached.

    Raises:
        KeyParseError: The data is not an armored key block.
        NoKeysFoundError: The block does not hold any public key.
    """
    try:
        text = data.decode("ascii")
    except UnicodeDecodeError as e:
        raise KeyParseError(e) from e

    if not pgpy_types.Armorable.is_armor(text):
        raise KeyParseError("no armored key block")

    keyring = pgpy.PGPKeyring()
    try:
        keyring.load(text)
    except Exception as e:
        raise KeyParseError(e) from e

    keys = []
    fingerprints = keyring.fingerprints(keyhalf="public", keytype="primary")
    for fingerprint in fingerprints:
        with keyring.key(fingerprint) as key:
            keys.append(key)

    if not keys:
        raise NoKeysFoundError()
    return keys


class Keyserver:
    """Client of the VKS keyserver interface."""

    def __init__(self, session: requests.Session):
        """Initializes the client.

        Args:
            session: The HTTP session used for all lookups.
        """
        self._session = session

    def _download(self, url: str, timeout: float) -> bytes:
        try:
            with self._session.get(url, timeout=timeout, stream=True) as resp:
                if resp.status_code != requests.codes.ok:
                    raise KeyserverStatusError(resp.status_code)

                body = bytearray()
                for chunk in resp.iter_content(chunk_size=_CHUNK_SIZE):
                    body.extend(chunk)
                    if len(body) > MAX_KEY_SIZE:
                        raise KeyTooLargeError()
                return bytes(body)
        except requests.RequestException as e:
            raise KeyserverTransportError(e) from e

    def fetch_keyring(
        self, url: str, *, timeout: float = 30.0
    ) -> list[pgpy.PGPKey]:
        """Downloads and parses the keys served at a URL.

        Args:
            url: The lookup URL, see `key_url`.
            timeout: Seconds to wait for the keyserver, both to connect and
              between bytes of the response.

        Returns:
            The primary public keys served by the keyserver.

        Raises:
            KeyFetchError: The keys could not be downloaded or parsed.
        """
        logger.debug("Fetching public key from %s", url)
        return parse_keyring(self._download(url, timeout))

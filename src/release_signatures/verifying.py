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

"""High level API for the verification interface of `release_signatures`.

The scheme of a signature (as classified by the caller, e.g., from the asset
file name) selects the engine that verifies it:

```python
result = release_signatures.verifying.verify(
    "sigstore", artifact_bytes, provenance_bytes
)
if not result.verified:
    print(f"Signature rejected: {result.error}")
```

Engines can also be configured once and used for many artifacts:

```python
config = release_signatures.verifying.Config().set_keyserver(
    "https://keyserver.ubuntu.com"
).set_timeout(10)

for artifact, signature in assets:
    config.verify("gpg", artifact, signature)
```

Verification failures are never raised: they are returned as results with
`verified` set to false and an `error` describing the cause. The only error
raised is `UnsupportedSchemeError`, when asking for a scheme without an engine.

The API defined here is stable and backwards compatible.
"""

import logging
import pathlib
import sys

import requests

from release_signatures._trust import trusted_root as trusted_root_lib
from release_signatures._verifying import verify_gpg as gpg
from release_signatures._verifying import verify_minisign as minisign
from release_signatures._verifying import verify_sigstore as sigstore
from release_signatures._verifying import verifying


if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self


logger = logging.getLogger(__name__)


SignatureScheme = verifying.SignatureScheme
TrustRootError = trusted_root_lib.TrustRootError
VerificationError = verifying.VerificationError
VerificationResult = verifying.VerificationResult
Verifier = verifying.Verifier
VerifyOptions = verifying.VerifyOptions


_ENGINES: dict[SignatureScheme, type[Verifier]] = {
    SignatureScheme.SIGSTORE: sigstore.Verifier,
    SignatureScheme.GPG: gpg.Verifier,
    SignatureScheme.MINISIGN: minisign.Verifier,
}


class UnsupportedSchemeError(ValueError):
    """No verification engine handles the requested scheme."""

    def __init__(self, scheme):
        super().__init__(f"unsupported signature scheme: {scheme!r}")
        self.scheme = scheme


def _as_scheme(scheme: SignatureScheme | str) -> SignatureScheme | None:
    if isinstance(scheme, SignatureScheme):
        return scheme
    if isinstance(scheme, str):
        try:
            return SignatureScheme(scheme)
        except ValueError:
            return None
    return None


def get_verifier(scheme: SignatureScheme | str) -> Verifier | None:
    """Returns a verification engine for a signature scheme.

    Engines are built with default settings on first use and shared by later
    calls. Use `Config` to customize them.

    Args:
        scheme: The scheme, either as enum value or as its string value.

    Returns:
        The engine whose `can_verify(scheme)` is true, or `None` when no
        engine handles the scheme (including `SignatureScheme.UNKNOWN`).
    """
    return _default_config.verifier_for(scheme)


def verify(
    scheme: SignatureScheme | str,
    artifact: bytes,
    signature: bytes,
    options: VerifyOptions | None = None,
) -> VerificationResult:
    """Verifies a signature with the engine of its scheme.

    The engine is the one returned by `get_verifier`. Unlike `Config.verify`,
    the options are given per call.

    Args:
        scheme: The scheme of the signature.
        artifact: The content that was signed.
        signature: The signature or attestation envelope.
        options: Per call options, see `VerifyOptions`.

    Returns:
        The verdict of the engine.

    Raises:
        UnsupportedSchemeError: No engine handles `scheme`.
    """
    verifier = get_verifier(scheme)
    if verifier is None:
        raise UnsupportedSchemeError(scheme)
    logger.debug("Verifying %s signature", verifier.scheme.value)
    return verifier.verify(artifact, signature, options)


class Config:
    """Configuration of the verification engines.

    Each engine is only built when first needed, so configuring the Sigstore
    trust root does not require network access until a Sigstore signature is
    actually verified.
    """

    def __init__(self):
        """Initializes the default configuration for verification."""
        self._trusted_root_source = None
        self._use_staging = False
        self._session = None
        self._options = VerifyOptions()
        self._verifiers = {}

    def use_trusted_root(self, path: pathlib.Path | str) -> Self:
        """Configures a local trusted root for Sigstore verification.

        Args:
            path: Path to a `trusted_root.json` file.

        Returns:
            The new verification configuration.

        Raises:
            TrustRootError: The file does not hold a valid trusted root.
        """
        self._trusted_root_source = (
            trusted_root_lib.InjectedTrustedRoot.from_file(path)
        )
        self._verifiers.pop(SignatureScheme.SIGSTORE, None)
        return self

    def use_staging(self) -> Self:
        """Verifies Sigstore signatures against the staging instance.

        This is supposed to be used only when testing.

        Returns:
            The new verification configuration.
        """
        self._use_staging = True
        self._verifiers.pop(SignatureScheme.SIGSTORE, None)
        return self

    def set_keyserver(self, url: str) -> Self:
        """Sets the keyserver used to discover OpenPGP keys.

        Args:
            url: Base URL of the keyserver, without the lookup path.

        Returns:
            The new verification configuration.
        """
        self._options = VerifyOptions(
            keyserver_url=url, timeout=self._options.timeout
        )
        return self

    def set_timeout(self, seconds: float) -> Self:
        """Sets the timeout of keyserver requests.

        Args:
            seconds: Number of seconds to wait for the keyserver.

        Returns:
            The new verification configuration.
        """
        self._options = VerifyOptions(
            keyserver_url=self._options.keyserver_url, timeout=seconds
        )
        return self

    def set_session(self, session: requests.Session) -> Self:
        """Sets the HTTP session used to query keyservers.

        Args:
            session: The session. Useful to configure proxies or retries.

        Returns:
            The new verification configuration.
        """
        self._session = session
        self._verifiers.pop(SignatureScheme.GPG, None)
        return self

    def _build(self, scheme: SignatureScheme) -> Verifier:
        match scheme:
            case SignatureScheme.SIGSTORE:
                return sigstore.Verifier(
                    trusted_root_source=self._trusted_root_source,
                    use_staging=self._use_staging,
                )
            case SignatureScheme.GPG:
                return gpg.Verifier(session=self._session)
            case _:
                return _ENGINES[scheme]()

    def verifier_for(self, scheme: SignatureScheme | str) -> Verifier | None:
        """Returns the configured engine for a signature scheme.

        Args:
            scheme: The scheme, either as enum value or as its string value.

        Returns:
            The engine, or `None` when no engine handles the scheme.
        """
        scheme = _as_scheme(scheme)
        if scheme not in _ENGINES:
            return None
        if scheme not in self._verifiers:
            self._verifiers[scheme] = self._build(scheme)
        return self._verifiers[scheme]

    def verify(
        self, scheme: SignatureScheme | str, artifact: bytes, signature: bytes
    ) -> VerificationResult:
        """Verifies a signature with the configured engine of its scheme.

        Args:
            scheme: The scheme of the signature.
            artifact: The content that was signed.
            signature: The signature or attestation envelope.

        Returns:
            The verdict of the engine.

        Raises:
            UnsupportedSchemeError: No engine handles `scheme`.
        """
        verifier = self.verifier_for(scheme)
        if verifier is None:
            raise UnsupportedSchemeError(scheme)
        logger.debug("Verifying %s signature", verifier.scheme.value)
        return verifier.verify(artifact, signature, self._options)


# Engines used by `get_verifier` and `verify`.
_default_config = Config()

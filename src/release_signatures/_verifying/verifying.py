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

"""Machinery shared by all signature verification engines.

Release artifacts come with signatures in several incompatible formats: a
Sigstore bundle (or a PEP 740 attestation that gets transposed into one), an
ASCII-armored OpenPGP detached signature, or a Minisign signature. Each format
is handled by a separate engine, a subclass of `Verifier`, which declares the
`SignatureScheme` it supports through `can_verify`.

Every engine reports its verdict as a `VerificationResult`. Verification
failures, whether caused by malformed input, missing trust material or a bad
signature, are never raised to the caller: they are recorded in the result's
`error` field. The result type enforces that a verified result carries no error
and that a failed result always carries one.
"""

import abc
import dataclasses
import enum
import sys


if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self


class SignatureScheme(str, enum.Enum):
    """The signature schemes known to the verification engines."""

    SIGSTORE = "sigstore"
    GPG = "gpg"
    MINISIGN = "minisign"
    # Assets whose scheme could not be determined. No engine handles this.
    UNKNOWN = "unknown"


class VerificationError(ValueError):
    """A signature could not be verified.

    The lower level error that caused the failure, if any, is kept as
    `__cause__`.
    """

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.__cause__ = cause


@dataclasses.dataclass(frozen=True)
class VerifyOptions:
    """Per call verification options.

    Attributes:
        keyserver_url: Base URL of the keyserver used to discover OpenPGP keys.
          When empty, the default public keyserver is used.
        timeout: Number of seconds allowed for each outbound keyserver request.
    """

    keyserver_url: str = ""
    timeout: float = 30.0


@dataclasses.dataclass(frozen=True)
class VerificationResult:
    """The verdict of a verification engine.

    Attributes:
        verified: Whether the signature is valid for the artifact.
        key_id: Hex encoded identifier of the key involved in verification.
          Only filled in by the OpenPGP engine, empty otherwise.
        error: The reason verification failed. Always `None` when `verified`
          is true, never `None` otherwise.
    """

    verified: bool
    key_id: str = ""
    error: Exception | None = None

    def __post_init__(self):
        if self.verified and self.error is not None:
            raise ValueError("A verified result cannot carry an error")
        if not self.verified and self.error is None:
            raise ValueError("A failed result must carry an error")

    @classmethod
    def success(cls, key_id: str = "") -> Self:
        """Builds a successful verification result."""
        return cls(verified=True, key_id=key_id)

    @classmethod
    def failure(cls, error: Exception, key_id: str = "") -> Self:
        """Builds a failed verification result.

        Args:
            error: The cause of the failure.
            key_id: Identifier of the key that was attempted, if any.

        Returns:
            A result with `verified` set to false.
        """
        return cls(verified=False, key_id=key_id, error=error)


class Verifier(metaclass=abc.ABCMeta):
    """Generic signature verification engine.

    Each subclass handles exactly one `SignatureScheme`. Engines only hold
    static configuration (trust roots, HTTP sessions), so a single instance can
    be shared between threads verifying different artifacts.
    """

    scheme: SignatureScheme

    def can_verify(self, scheme: SignatureScheme) -> bool:
        """Checks whether this engine handles the given signature scheme.

        Args:
            scheme: The scheme a verification request is declared with.

        Returns:
            True only for the scheme of this engine.
        """
        return scheme == self.scheme

    @abc.abstractmethod
    def verify(
        self,
        artifact: bytes,
        signature: bytes,
        options: VerifyOptions | None = None,
    ) -> VerificationResult:
        """Verifies a signature over an artifact.

        Args:
            artifact: The content that was signed.
            signature: The signature, or the envelope carrying it.
            options: Per call options. Defaults are used when missing.

        Returns:
            The verdict. Verification failures are reported in the result and
            are never raised.
        """

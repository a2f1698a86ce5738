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

"""Errors raised while decoding signature envelopes into bundles.

Each failure mode has its own type so that callers can tell apart an input
that is not a bundle at all, a PyPI document without attestations, and an
attestation where a single field is malformed.
"""


class BundleError(ValueError):
    """Base class for all envelope decoding errors."""


class UnsupportedFormatError(BundleError):
    """The input is neither a Sigstore bundle nor a PEP 740 document."""

    def __init__(self, detail: str = ""):
        message = "failed to parse bundle: unsupported format"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class NoAttestationsError(BundleError):
    """The PEP 740 document does not contain any attestation."""

    def __init__(self):
        super().__init__("failed to parse bundle: no attestations found")


class TranslationError(BundleError):
    """A field of a PEP 740 attestation could not be translated.

    Attributes:
        field: Human readable name of the field that failed.
    """

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class FieldDecodeError(TranslationError):
    """A base64 encoded field could not be decoded."""

    def __init__(self, field: str, cause: Exception):
        super().__init__(field, f"failed to decode {field}: {cause}")


class FieldParseError(TranslationError):
    """A decimal integer field could not be parsed."""

    def __init__(self, field: str, value: str):
        super().__init__(field, f"failed to parse {field}: {value!r}")


class AttestationConversionError(BundleError):
    """A PEP 740 attestation could not be converted to a bundle.

    The originating `TranslationError` is kept as `__cause__` and its field
    name is exposed as `field`.
    """

    def __init__(self, cause: TranslationError):
        super().__init__(f"failed to convert PyPI attestation: {cause}")
        self.field = cause.field


class BundleConstructionError(BundleError):
    """The decoded material does not form a valid Sigstore bundle."""

    def __init__(self, cause: Exception):
        super().__init__(f"failed to create bundle: {cause}")

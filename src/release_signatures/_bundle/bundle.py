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

"""Loading of signature envelopes as Sigstore bundles.

Two wire formats are accepted: the Sigstore bundle JSON format, and PEP 740
provenance documents as served by PyPI. Detection happens in order: the input
is first loaded as a Sigstore bundle and, only if that fails, as a PEP 740
document whose first attestation is translated into a bundle.
"""

import logging

from sigstore import models as sigstore_models

from release_signatures._bundle import errors
from release_signatures._bundle import pep740


logger = logging.getLogger(__name__)


def _from_sigstore_json(raw: bytes | str) -> sigstore_models.Bundle | None:
    try:
        return sigstore_models.Bundle.from_json(raw)
    except Exception as e:
        logger.debug("Input is not a Sigstore bundle: %s", e)
        return None


def parse_bundle(raw: bytes | str) -> sigstore_models.Bundle:
    """Loads a Sigstore bundle out of a signature envelope.

    Args:
        raw: The JSON encoded envelope. Either a Sigstore bundle or a PEP 740
          provenance document.

    Returns:
        The Sigstore bundle. Its signature has not been verified yet.

    Raises:
        UnsupportedFormatError: The input is in neither format.
        NoAttestationsError: The input is a PEP 740 document without any
          attestation.
        AttestationConversionError: A field of the PEP 740 attestation is
          malformed.
        BundleConstructionError: The translated attestation does not form a
          valid Sigstore bundle.
    """
    bundle = _from_sigstore_json(raw)
    if bundle is not None:
        return bundle

    attestation = pep740.parse_document(raw).first_attestation()
    try:
        canonical_bundle = pep740.to_canonical_bundle(attestation)
    except errors.TranslationError as e:
        raise errors.AttestationConversionError(e) from e

    logger.debug("Translated PEP 740 attestation into a Sigstore bundle")
    try:
        return sigstore_models.Bundle(canonical_bundle)
    except Exception as e:
        raise errors.BundleConstructionError(e) from e

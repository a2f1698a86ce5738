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

"""Keyless verification of Sigstore bundles and PEP 740 attestations.

The signature passed to the verifier is either a Sigstore bundle or a PEP 740
provenance document (see `release_signatures._bundle.pep740`). In both cases
verification checks that:

* the signing certificate chains up to the Fulcio CA in the trusted root;
* the signature was recorded in the Rekor transparency log, and the log entry
  provides a verified timestamp within the certificate validity;
* the signature covers the artifact (directly, or through the subject of the
  in-toto statement in a DSSE envelope).

The identity of the signer is not checked: attestations published by different
CI providers and projects carry unrelated identities, so any identity issued a
certificate by the trusted Fulcio instance is accepted.
"""

import hashlib
import logging

from sigstore import dsse as sigstore_dsse
from sigstore import errors as sigstore_errors
from sigstore import hashes as sigstore_hashes
from sigstore import models as sigstore_models
from sigstore import verify as sigstore_verifier
from sigstore_models.common import v1 as common_pb
from typing_extensions import override

from release_signatures._bundle import bundle as bundle_lib
from release_signatures._bundle import errors
from release_signatures._trust import trusted_root as trusted_root_lib
from release_signatures._verifying import verifying


logger = logging.getLogger(__name__)


def _verify_bundle(
    verifier: sigstore_verifier.Verifier,
    artifact: bytes,
    bundle: sigstore_models.Bundle,
) -> None:
    """Checks that the bundle is valid and covers the artifact.

    Bundles with a DSSE envelope sign an in-toto statement, which must list the
    SHA-256 digest of the artifact among its subjects. Other bundles carry a
    signature over the artifact itself.

    Raises:
        sigstore_errors.Error: The bundle does not verify.
    """
    policy = sigstore_verifier.policy.UnsafeNoOp()
    if bundle._dsse_envelope is None:
        verifier.verify_artifact(input_=artifact, bundle=bundle, policy=policy)
        return

    payload_type, payload = verifier.verify_dsse(bundle=bundle, policy=policy)
    if payload_type != sigstore_dsse.Envelope._TYPE:
        raise sigstore_errors.VerificationError(
            f"expected in-toto payload for DSSE, got {payload_type}"
        )

    digest = sigstore_hashes.Hashed(
        algorithm=common_pb.HashAlgorithm.SHA2_256,
        digest=hashlib.sha256(artifact).digest(),
    )
    statement = sigstore_dsse.Statement(payload)
    if not statement._matches_digest(digest):
        raise sigstore_errors.VerificationError(
            f"in-toto statement has no subject for digest {digest.digest.hex()}"
        )


class Verifier(verifying.Verifier):
    """Signature verification using Sigstore."""

    scheme = verifying.SignatureScheme.SIGSTORE

    def __init__(
        self,
        *,
        trusted_root_source: trusted_root_lib.TrustedRootSource | None = None,
        use_staging: bool = False,
    ):
        """Initializes Sigstore verifiers.

        Args:
            trusted_root_source: Where to obtain the trusted root from. When
              missing, the trusted root of the public good instance is fetched
              on every verification.
            use_staging: Use staging configurations, instead of production. This
              is supposed to be set to True only when testing. Default is False.
              Ignored when `trusted_root_source` is given.
        """
        if trusted_root_source is None:
            trusted_root_source = trusted_root_lib.NetworkTrustedRoot(
                use_staging=use_staging
            )
        self._trusted_root_source = trusted_root_source
        logger.warning(
            "Sigstore verification accepts any signer identity certified by "
            "the trusted root"
        )

    @override
    def verify(
        self,
        artifact: bytes,
        signature: bytes,
        options: verifying.VerifyOptions | None = None,
    ) -> verifying.VerificationResult:
        del options  # unused
        try:
            bundle = bundle_lib.parse_bundle(signature)
        except errors.BundleError as e:
            return self._failure(e)

        try:
            trusted_root = self._trusted_root_source.trusted_root()
        except trusted_root_lib.TrustRootError as e:
            return self._failure(e)

        try:
            verifier = sigstore_verifier.Verifier(trusted_root=trusted_root)
        except Exception as e:
            error = verifying.VerificationError(
                f"failed to create verifier: {e}", e
            )
            return self._failure(error)

        try:
            _verify_bundle(verifier, artifact, bundle)
        except Exception as e:
            return self._failure(
                verifying.VerificationError(f"verification failed: {e}", e)
            )

        logger.info("Verified Sigstore bundle")
        # Keyless signatures have no long lived key to report.
        return verifying.VerificationResult.success()

    def _failure(self, error: Exception) -> verifying.VerificationResult:
        logger.info("Sigstore verification failed: %s", error)
        return verifying.VerificationResult.failure(error)

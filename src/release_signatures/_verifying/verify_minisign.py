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

"""Placeholder for Minisign signatures, which always fail verification."""

import logging

from typing_extensions import override

from release_signatures._verifying import verifying


logger = logging.getLogger(__name__)


class MinisignNotImplementedError(verifying.VerificationError):
    def __init__(self):
        super().__init__("minisign verification not yet implemented")


class Verifier(verifying.Verifier):
    """Minisign engine that rejects every signature."""

    scheme = verifying.SignatureScheme.MINISIGN

    @override
    def verify(
        self,
        artifact: bytes,
        signature: bytes,
        options: verifying.VerifyOptions | None = None,
    ) -> verifying.VerificationResult:
        del artifact, signature, options  # unused
        logger.warning("Minisign signatures cannot be verified yet")
        return verifying.VerificationResult.failure(
            MinisignNotImplementedError()
        )

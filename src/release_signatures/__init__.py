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

"""Verification of signatures published alongside release artifacts.

Projects publish their releases with signatures in several formats. This
library verifies the ones that can be checked without any prior knowledge
about the signer:

- Sigstore: keyless signatures, as
  [Sigstore bundles](https://docs.sigstore.dev/about/bundle/) or as
  [PEP 740](https://peps.python.org/pep-0740/) attestations served by PyPI.
  The certificate must chain to the Fulcio CA of the trusted root and the
  signature must be recorded in the Rekor transparency log. The identity of
  the signer is not checked.
- GPG: ASCII-armored OpenPGP detached signatures. The public key is downloaded
  from a keyserver using the key ID embedded in the signature.
- Minisign: recognized, but always rejected for now.

Everything goes through `release_signatures.verifying`:

```python
result = release_signatures.verifying.verify(
    "gpg", artifact_bytes, signature_bytes
)
```

The result says whether the signature is valid (`result.verified`), which key
made it for OpenPGP signatures (`result.key_id`) and why verification failed
otherwise (`result.error`).
"""

from release_signatures import verifying


__version__ = "0.1.0"


__all__ = ["verifying"]

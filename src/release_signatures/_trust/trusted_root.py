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

"""Sources of the Sigstore trusted root.

The trusted root holds the Fulcio certificate authorities, the Rekor
transparency log keys and the timestamp authorities that keyless verification
is anchored on. It is either supplied by the caller (for tests and air-gapped
deployments) or fetched from the Sigstore public good instance through TUF.
"""

import abc
import logging
import pathlib
import sys

from sigstore import models as sigstore_models
from typing_extensions import override


if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self


logger = logging.getLogger(__name__)


class TrustRootError(ValueError):
    """The trusted root could not be obtained."""

    def __init__(self, cause: Exception):
        super().__init__(f"failed to fetch trusted root: {cause}")


class TrustedRootSource(metaclass=abc.ABCMeta):
    """Strategy providing the trusted root to the keyless engine."""

    @abc.abstractmethod
    def trusted_root(self) -> sigstore_models.TrustedRoot:
        """Returns the trusted root to verify against.

        Raises:
            TrustRootError: The trusted root is not available.
        """


class InjectedTrustedRoot(TrustedRootSource):
    """A trusted root supplied by the caller."""

    def __init__(self, trusted_root: sigstore_models.TrustedRoot):
        self._trusted_root = trusted_root

    @classmethod
    def from_file(cls, path: pathlib.Path | str) -> Self:
        """Loads a trusted root from a `trusted_root.json` file.

        Args:
            path: Path to the JSON encoded trusted root.

        Raises:
            TrustRootError: The file cannot be read or is not a trusted root.
        """
        try:
            trusted_root = sigstore_models.TrustedRoot.from_file(str(path))
        except Exception as e:
            raise TrustRootError(e) from e
        return cls(trusted_root)

    @override
    def trusted_root(self) -> sigstore_models.TrustedRoot:
        return self._trusted_root


class NetworkTrustedRoot(TrustedRootSource):
    """The trusted root of the Sigstore public good instance.

    The root is refreshed through TUF on every request, so rotated keys are
    picked up without restarting the process.
    """

    def __init__(self, *, use_staging: bool = False):
        """Initializes the network source.

        Args:
            use_staging: Use the staging instance instead of production. This
              is supposed to be set to True only when testing. Default is False.
        """
        self._use_staging = use_staging

    @override
    def trusted_root(self) -> sigstore_models.TrustedRoot:
        instance = "staging" if self._use_staging else "production"
        logger.debug("Fetching trusted root of the %s instance", instance)
        try:
            if self._use_staging:
                config = sigstore_models.ClientTrustConfig.staging()
            else:
                config = sigstore_models.ClientTrustConfig.production()
            return config.trusted_root
        except Exception as e:
            raise TrustRootError(e) from e

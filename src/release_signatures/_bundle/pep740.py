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

"""PEP 740 provenance documents and their translation into Sigstore bundles.

PyPI serves the attestations of a distribution as a "provenance" object
(https://peps.python.org/pep-0740/):

```json
{
  "version": 1,
  "attestation_bundles": [
    {
      "publisher": {...},
      "attestations": [
        {
          "version": 1,
          "envelope": {"signature": "<b64>", "statement": "<b64>"},
          "verification_material": {
            "certificate": "<b64 DER>",
            "transparency_entries": [{...Rekor entry...}]
          }
        }
      ]
    }
  ]
}
```

The document is decoded in two steps. First `parse_document` checks the JSON
structure against the models below, keeping every field as the string found in
the document. Then `to_canonical_bundle` decodes the base64 and integer strings
of a single attestation and builds a Sigstore bundle out of them. Errors in the
first step mean the input is not a PEP 740 document at all, errors in the
second step name the offending field.

Absent keys (and JSON `null`) default to empty values; keys the models do not
declare (e.g., `publisher`) are ignored.
"""

import base64
import re
from typing import Any

import pydantic
from sigstore_models import intoto as intoto_pb
from sigstore_models.bundle import v1 as bundle_pb
from sigstore_models.common import v1 as common_pb
from sigstore_models.rekor import v1 as rekor_pb

from release_signatures._bundle import errors


# The media type of bundles produced from PEP 740 attestations.
BUNDLE_V03_MEDIA_TYPE: str = "application/vnd.dev.sigstore.bundle.v0.3+json"


# The DSSE payload type of in-toto statements.
IN_TOTO_JSON_PAYLOAD_TYPE: str = "application/vnd.in-toto+json"


_INT64_PATTERN = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


class _Document(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(
        extra="ignore", frozen=True, strict=True
    )

    @pydantic.field_validator("*", mode="before")
    @classmethod
    def _null_is_default(
        cls, value: Any, info: pydantic.ValidationInfo
    ) -> Any:
        if value is None:
            field = cls.model_fields[info.field_name]
            return field.get_default(call_default_factory=True)
        return value


class Envelope(_Document):
    signature: str = ""
    statement: str = ""


class Checkpoint(_Document):
    envelope: str = ""


class InclusionProof(_Document):
    log_index: str = pydantic.Field(default="", alias="logIndex")
    root_hash: str = pydantic.Field(default="", alias="rootHash")
    tree_size: str = pydantic.Field(default="", alias="treeSize")
    hashes: list[str] = pydantic.Field(default_factory=list)
    checkpoint: Checkpoint = pydantic.Field(default_factory=Checkpoint)


class InclusionPromise(_Document):
    signed_entry_timestamp: str = pydantic.Field(
        default="", alias="signedEntryTimestamp"
    )


class KindVersion(_Document):
    kind: str = ""
    version: str = ""


class LogId(_Document):
    key_id: str = pydantic.Field(default="", alias="keyId")


class TransparencyEntry(_Document):
    """A Rekor entry, in the JSON encoding of the Rekor protobuf messages."""

    log_index: str = pydantic.Field(default="", alias="logIndex")
    log_id: LogId = pydantic.Field(default_factory=LogId, alias="logId")
    kind_version: KindVersion = pydantic.Field(
        default_factory=KindVersion, alias="kindVersion"
    )
    integrated_time: str = pydantic.Field(default="", alias="integratedTime")
    inclusion_promise: InclusionPromise = pydantic.Field(
        default_factory=InclusionPromise, alias="inclusionPromise"
    )
    inclusion_proof: InclusionProof = pydantic.Field(
        default_factory=InclusionProof, alias="inclusionProof"
    )
    canonicalized_body: str = pydantic.Field(
        default="", alias="canonicalizedBody"
    )


class VerificationMaterial(_Document):
    certificate: str = ""
    transparency_entries: list[TransparencyEntry] = pydantic.Field(
        default_factory=list
    )


class Attestation(_Document):
    """A single PEP 740 attestation, with all fields still encoded."""

    version: int = 0
    envelope: Envelope = pydantic.Field(default_factory=Envelope)
    verification_material: VerificationMaterial = pydantic.Field(
        default_factory=VerificationMaterial
    )


class AttestationBundle(_Document):
    attestations: list[Attestation] = pydantic.Field(default_factory=list)


class Provenance(_Document):
    """The top level PEP 740 provenance object."""

    version: int = 0
    attestation_bundles: list[AttestationBundle] = pydantic.Field(
        default_factory=list
    )

    def first_attestation(self) -> Attestation:
        """Returns the first attestation of the first bundle.

        Raises:
            NoAttestationsError: The document carries no attestation there.
        """
        if not self.attestation_bundles:
            raise errors.NoAttestationsError()
        attestations = self.attestation_bundles[0].attestations
        if not attestations:
            raise errors.NoAttestationsError()
        return attestations[0]


def parse_document(raw: bytes | str) -> Provenance:
    """Parses a PEP 740 provenance document.

    Only the structure of the document is checked here. Field contents are
    validated when an attestation is translated, see `to_canonical_bundle`.

    Args:
        raw: The JSON document.

    Returns:
        The decoded document.

    Raises:
        UnsupportedFormatError: The input is not JSON, is not a JSON object, or
          a known field has the wrong JSON type.
    """
    try:
        return Provenance.model_validate_json(raw)
    except (pydantic.ValidationError, RecursionError) as e:
        raise errors.UnsupportedFormatError() from e


def decode_base64(value: str, field: str) -> bytes:
    """Decodes a standard, padded base64 string.

    Line breaks are skipped, so wrapped values decode like unwrapped ones. Any
    other character outside the base64 alphabet is an error.

    Args:
        value: The encoded string.
        field: Name of the field, used in the error.

    Raises:
        FieldDecodeError: The value is not valid base64.
    """
    unwrapped = value.replace("\r", "").replace("\n", "")
    try:
        return base64.b64decode(unwrapped, validate=True)
    except ValueError as e:
        raise errors.FieldDecodeError(field, e) from e


def parse_int64(value: str, field: str) -> int:
    """Parses a signed 64 bit decimal integer.

    Only an optional sign followed by ASCII digits is accepted: no whitespace,
    no underscores, no empty string.

    Args:
        value: The decimal string.
        field: Name of the field, used in the error.

    Raises:
        FieldParseError: The value is not a valid 64 bit integer.
    """
    if not _INT64_PATTERN.fullmatch(value):
        raise errors.FieldParseError(field, value)
    result = int(value)
    if not _INT64_MIN <= result <= _INT64_MAX:
        raise errors.FieldParseError(field, value)
    return result


def _translate_inclusion_proof(
    proof: InclusionProof,
) -> rekor_pb.InclusionProof:
    log_index = parse_int64(proof.log_index, "proof log index")
    tree_size = parse_int64(proof.tree_size, "tree size")
    hashes = [decode_base64(h, "hash") for h in proof.hashes]
    root_hash = decode_base64(proof.root_hash, "root hash")

    return rekor_pb.InclusionProof(
        log_index=str(log_index),
        root_hash=base64.b64encode(root_hash),
        tree_size=str(tree_size),
        hashes=[base64.b64encode(h) for h in hashes],
        checkpoint=rekor_pb.Checkpoint(envelope=proof.checkpoint.envelope),
    )


def _translate_transparency_entry(
    entry: TransparencyEntry,
) -> rekor_pb.TransparencyLogEntry:
    integrated_time = parse_int64(entry.integrated_time, "integrated time")
    log_index = parse_int64(entry.log_index, "log index")
    body = decode_base64(entry.canonicalized_body, "canonicalized body")
    signed_entry_timestamp = decode_base64(
        entry.inclusion_promise.signed_entry_timestamp, "SET"
    )
    log_id = decode_base64(entry.log_id.key_id, "log ID")

    # Entries without a proof only carry the inclusion promise.
    inclusion_proof = None
    if entry.inclusion_proof.log_index:
        inclusion_proof = _translate_inclusion_proof(entry.inclusion_proof)

    return rekor_pb.TransparencyLogEntry(
        log_index=str(log_index),
        log_id=common_pb.LogId(key_id=base64.b64encode(log_id)),
        kind_version=rekor_pb.KindVersion(
            kind=entry.kind_version.kind, version=entry.kind_version.version
        ),
        integrated_time=str(integrated_time),
        inclusion_promise=rekor_pb.InclusionPromise(
            signed_entry_timestamp=base64.b64encode(signed_entry_timestamp)
        ),
        inclusion_proof=inclusion_proof,
        canonicalized_body=base64.b64encode(body),
    )


def to_canonical_bundle(attestation: Attestation) -> bundle_pb.Bundle:
    """Translates a PEP 740 attestation into a Sigstore bundle.

    The attestation's DSSE envelope becomes the bundle content, with the
    in-toto statement as payload and a single signature. The leaf certificate
    and the transparency log entries become the verification material.

    Args:
        attestation: The attestation to translate.

    Returns:
        The bundle, always with the v0.3 media type.

    Raises:
        TranslationError: A field holds malformed base64 or a malformed
          integer. The error names the field.
        BundleConstructionError: The decoded fields do not form a bundle, e.g.,
          an entry lacks its inclusion proof or an index is negative.
    """
    material = attestation.verification_material
    signature = decode_base64(attestation.envelope.signature, "signature")
    statement = decode_base64(attestation.envelope.statement, "statement")
    certificate = decode_base64(material.certificate, "certificate")

    try:
        tlog_entries = [
            _translate_transparency_entry(entry)
            for entry in material.transparency_entries
        ]

        return bundle_pb.Bundle(
            media_type=BUNDLE_V03_MEDIA_TYPE,
            verification_material=bundle_pb.VerificationMaterial(
                certificate=common_pb.X509Certificate(
                    raw_bytes=base64.b64encode(certificate)
                ),
                tlog_entries=tlog_entries,
            ),
            dsse_envelope=intoto_pb.Envelope(
                payload=base64.b64encode(statement),
                payload_type=IN_TOTO_JSON_PAYLOAD_TYPE,
                signatures=[
                    intoto_pb.Signature(sig=base64.b64encode(signature))
                ],
            ),
        )
    except pydantic.ValidationError as e:
        raise errors.BundleConstructionError(e) from e

"""DID document builder.

Documents are built from a DID string, so the SCID dependent fields of a
genesis document are produced twice: once with the placeholder DID to derive
the SCID, and once with the final DID.
"""

from config import settings
from webvh.models.did_document import (
    VERIFICATION_RELATIONSHIPS,
    DidDocument,
    VerificationMethod,
)
from webvh.utilities import unique

DEFAULT_RELATIONSHIPS = ["authentication", "assertionMethod"]

KNOWN_PROPERTIES = {
    "@context",
    "id",
    "controller",
    "alsoKnownAs",
    "verificationMethod",
    "service",
    *VERIFICATION_RELATIONSHIPS,
}


def vm_fragment(verification_method: VerificationMethod) -> str:
    """Return the fragment of a verification method id."""
    if verification_method.id and "#" in verification_method.id:
        return verification_method.id.split("#")[-1]
    if verification_method.id:
        return verification_method.id
    return verification_method.publicKeyMultibase[-8:]


def create_vm_id(verification_method: VerificationMethod, did: str) -> str:
    """Create a verification method id under a DID."""
    return f"{did}#{vm_fragment(verification_method)}"


def _reference(value, did: str):
    if not isinstance(value, str):
        return value
    if value.startswith("#"):
        return f"{did}{value}"
    if value.startswith("did:"):
        return f"{did}#{value.split('#')[-1]}"
    return f"{did}#{value}"


class DocumentBuilder:
    """Build DID documents for a given DID string."""

    def __init__(
        self,
        verification_methods=None,
        context=None,
        controller=None,
        also_known_as=None,
        services=None,
        relationships=None,
        extra=None,
    ):
        """Initialize the builder with the DID independent document content."""
        self.verification_methods = [
            vm if isinstance(vm, VerificationMethod) else VerificationMethod.model_validate(vm)
            for vm in verification_methods or []
        ]
        if isinstance(context, (str, dict)):
            context = [context]
        self.context = context or []
        if isinstance(controller, str):
            controller = [controller]
        self.controller = controller
        self.also_known_as = also_known_as
        self.services = services
        self.relationships = {
            name: values for name, values in (relationships or {}).items() if values is not None
        }
        self.extra = {
            key: value for key, value in (extra or {}).items() if key not in KNOWN_PROPERTIES
        }

    def _verification_material(self, did: str) -> dict:
        material = {}
        methods = []
        derived = {name: [] for name in VERIFICATION_RELATIONSHIPS}
        for vm in self.verification_methods:
            vm_id = create_vm_id(vm, did)
            methods.append(
                {
                    "id": vm_id,
                    "type": vm.type,
                    "controller": vm.controller or did,
                    "publicKeyMultibase": vm.publicKeyMultibase,
                }
            )
            for name in [vm.purpose] if vm.purpose else DEFAULT_RELATIONSHIPS:
                derived[name].append(vm_id)
        if methods:
            material["verificationMethod"] = methods

        for name in VERIFICATION_RELATIONSHIPS:
            if name in self.relationships:
                values = [_reference(value, did) for value in self.relationships[name]]
            else:
                values = derived[name]
            if values:
                material[name] = unique(values)
        return material

    def build(self, did: str) -> dict:
        """Return the DID document for a DID."""
        if self.controller:
            controller = unique([did, *self.controller])
        else:
            controller = did
        document = DidDocument.model_validate(
            {
                "@context": unique([*settings.BASE_CONTEXT, *self.context]),
                "id": did,
                "controller": controller,
                "alsoKnownAs": self.also_known_as,
                "service": self.services,
                **self._verification_material(did),
                **self.extra,
            }
        )
        return document.model_dump()

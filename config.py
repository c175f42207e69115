"""App configuration."""

import os

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

basedir = os.path.abspath(os.path.dirname(__file__))
load_dotenv(os.path.join(basedir, ".env"))


class Settings(BaseSettings):
    """App settings."""

    PROJECT_TITLE: str = "DID WebVH Log Server"
    PROJECT_VERSION: str = "v0"

    DOMAIN: str = os.environ.get("WEBVH_DOMAIN", "localhost")

    SCID_PLACEHOLDER: str = r"{SCID}"
    DID_WEBVH_PREFIX: str = "did:webvh:"
    DID_KEY_PREFIX: str = "did:key:"

    WEBVH_VERSION: str = os.environ.get("WEBVH_VERSION", "1.0")
    WEBVH_METHOD: str = f"did:webvh:{WEBVH_VERSION}"

    BASE_CONTEXT: list = [
        "https://www.w3.org/ns/did/v1",
        "https://w3id.org/security/multikey/v1",
    ]

    PROOF_TYPE: str = "DataIntegrityProof"
    PROOF_CRYPTOSUITE: str = "eddsa-jcs-2022"
    PROOF_PURPOSE: str = "authentication"

    LOGS_DIR: str = os.environ.get("WEBVH_LOGS_DIR", os.path.join(basedir, "logs"))
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")
    FETCH_TIMEOUT: int = int(os.environ.get("WEBVH_FETCH_TIMEOUT", "10"))

    RESERVED_NAMESPACES: list = ["api", ".well-known"]


settings = Settings()

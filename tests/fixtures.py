from config import settings

TEST_UPDATE_SEED = "ixUwS8A2SYzmPiGor7t08wgg1ifNABrB"
TEST_NEXT_SEED = "TestNextKeySeedNumber01Abcdefghi"
TEST_SIGNING_SEED = "TestSigningSeedNumber01Abcdefghi"
TEST_UNKNOWN_SEED = "TestUnknownSeedNumber01Abcdefghi"

TEST_WITNESS_SEED = "TestWitnessSeedNumber01Abcdefghi"
TEST_SECOND_WITNESS_SEED = "TestWitnessSeedNumber02Abcdefghi"

TEST_DOMAIN = settings.DOMAIN
TEST_NEW_DOMAIN = "example.com"
TEST_DID_NAMESPACE = "test"
TEST_DID_IDENTIFIER = "01"
TEST_PATHS = [TEST_DID_NAMESPACE, TEST_DID_IDENTIFIER]
TEST_PLACEHOLDER_ID = (
    r"did:webvh:{SCID}:" + f"{TEST_DOMAIN}:{TEST_DID_NAMESPACE}:{TEST_DID_IDENTIFIER}"
)

TEST_VERSION_TIME = "2025-06-19T03:09:19Z"
TEST_UPDATE_TIME = "2025-06-20T03:09:19Z"
TEST_SECOND_UPDATE_TIME = "2025-06-21T03:09:19Z"
TEST_THIRD_UPDATE_TIME = "2025-06-22T03:09:19Z"

TEST_SERVICE = {
    "id": "#linked-domain",
    "type": "LinkedDomains",
    "serviceEndpoint": "https://example.com",
}

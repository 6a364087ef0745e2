"""
MonadVerify Contract ABI
========================

The subset of the deployed contract's ABI used by this package.
"""

REQUESTED_SIGNATURE = "VerificationRequested(address,bytes32,string,uint256)"
COMPLETED_SIGNATURE = "VerificationCompleted(address,bytes32,bool,uint256)"

_ATTESTATION_COMPONENTS = [
    {"name": "recipient", "type": "address"},
    {
        "name": "request",
        "type": "tuple",
        "components": [
            {"name": "url", "type": "string"},
            {"name": "header", "type": "string"},
            {"name": "method", "type": "string"},
            {"name": "body", "type": "string"},
        ],
    },
    {
        "name": "reponseResolve",
        "type": "tuple[]",
        "components": [
            {"name": "keyName", "type": "string"},
            {"name": "parseType", "type": "string"},
            {"name": "parsePath", "type": "string"},
        ],
    },
    {"name": "data", "type": "string"},
    {"name": "attConditions", "type": "string"},
    {"name": "timestamp", "type": "uint64"},
    {"name": "additionParams", "type": "string"},
    {
        "name": "attestors",
        "type": "tuple[]",
        "components": [
            {"name": "attestorAddr", "type": "address"},
            {"name": "url", "type": "string"},
        ],
    },
    {"name": "signatures", "type": "bytes[]"},
]

MONAD_VERIFY_ABI = [
    # Writes
    {
        "inputs": [
            {"name": "dataType", "type": "string"},
            {"name": "attestation", "type": "tuple", "components": _ATTESTATION_COMPONENTS},
        ],
        "name": "requestVerification",
        "outputs": [{"name": "requestId", "type": "bytes32"}],
        "stateMutability": "payable",
        "type": "function",
    },
    {
        "inputs": [{"name": "requestId", "type": "bytes32"}],
        "name": "completeVerification",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    # Views
    {
        "inputs": [{"name": "user", "type": "address"}],
        "name": "getUserProfile",
        "outputs": [
            {
                "name": "profile",
                "type": "tuple",
                "components": [
                    {"name": "verificationCount", "type": "uint256"},
                    {"name": "lastVerificationTime", "type": "uint256"},
                    {"name": "isVerified", "type": "bool"},
                ],
            }
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "getContractStats",
        "outputs": [
            {"name": "totalUsers", "type": "uint256"},
            {"name": "totalVerifications_", "type": "uint256"},
            {"name": "contractBalance", "type": "uint256"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "verificationFee",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    # Events
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "user", "type": "address"},
            {"indexed": True, "name": "requestId", "type": "bytes32"},
            {"indexed": False, "name": "dataType", "type": "string"},
            {"indexed": False, "name": "timestamp", "type": "uint256"},
        ],
        "name": "VerificationRequested",
        "type": "event",
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "user", "type": "address"},
            {"indexed": True, "name": "requestId", "type": "bytes32"},
            {"indexed": False, "name": "success", "type": "bool"},
            {"indexed": False, "name": "timestamp", "type": "uint256"},
        ],
        "name": "VerificationCompleted",
        "type": "event",
    },
]

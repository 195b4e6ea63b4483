from ziaprovider.domain.models import (
    Activation,
    ActivationState,
    AllowListUrls,
    ApiModel,
    DenyListUrls,
    IDNameExtensions,
    IPSourceGroup,
    Md5HashType,
    Md5HashValue,
    Md5HashValueList,
    RuleLabel,
    SandboxHashList,
    SecurityListUrls,
)

__all__ = [
    "Activation",
    "ActivationState",
    "AllowListUrls",
    "ApiModel",
    "DenyListUrls",
    "IDNameExtensions",
    "IPSourceGroup",
    "Md5HashType",
    "Md5HashValue",
    "Md5HashValueList",
    "RuleLabel",
    "SandboxHashList",
    "SecurityListUrls",
]

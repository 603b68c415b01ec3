from vmcsampler.nqs.base import Machine
from vmcsampler.nqs.parameterization import ParameterLayout, ParameterSlice
from vmcsampler.nqs.rbm import (
    RbmParams,
    RbmSpin,
    build_local_mask,
    hidden_fields,
    init_rbm_params,
    log_2cosh,
)

__all__ = [
    "Machine",
    "ParameterLayout",
    "ParameterSlice",
    "RbmParams",
    "RbmSpin",
    "build_local_mask",
    "hidden_fields",
    "init_rbm_params",
    "log_2cosh",
]

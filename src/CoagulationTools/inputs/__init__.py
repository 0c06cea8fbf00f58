from CoagulationTools.inputs.kernels import (additive_kernel, constant_kernel,
                                             get_kernel, get_rate_constants)
from CoagulationTools.inputs.network import (Reaction, ReactionNetwork,
                                             JumpChannel, dNdt_from_populations,
                                             dCdt_from_concentrations)
from CoagulationTools.inputs.coagulation import CoagulationKinetics

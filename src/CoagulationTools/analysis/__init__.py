from CoagulationTools.analysis.util import (additive_kernel_solution,
                                            constant_kernel_solution,
                                            get_analytical_solution,
                                            get_total_mass, get_total_clusters,
                                            average_populations)

from CoagulationTools.simulation.util import (get_coagulation_parser,
                                              get_metadata,
                                              run_one_coagulation,
                                              run_and_save_one,
                                              save_data_to_hdf5,
                                              load_data_from_hdf5)

# radius of a monomer, in cm (10 um)
MONOMER_RADIUS_CGS = 10e-06 * 100

# volume fraction occupied by the monomers at t=0
MONOMER_VOLUME_FRACTION = 1e-06

# number of monomers present at t=0
INITIAL_MONOMER_COUNT = 10000

# maximum cluster size tracked by the network
MAX_CLUSTER_SIZE = 10

# collision frequency constant of the additive kernel, in s^-1
ADDITIVE_KERNEL_COEFFICIENT = 1.53e03

# collision volume rate of the constant kernel, in cm^3 s^-1
CONSTANT_KERNEL_COEFFICIENT = 1.84e-04

# end of the simulated time span for each kernel, in s
KERNEL_TIME_SPANS = {'additive': 2000.0, 'constant': 350.0}

# number of saved time points per simulation
NUM_SAVE_POINTS = 31

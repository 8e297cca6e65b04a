"""Hypercube addressing.

Workers occupy ranks ``1 .. 2**dimension``; rank 0 is the distributor. A
worker's position in the cube (its cube-index) is its rank minus one, and its
neighbors are found by flipping one bit of that index.
"""


def cube_size(dimension):
    return 1 << dimension


def required_group_size(dimension):
    # one distributor plus one process per cube node
    return 1 + cube_size(dimension)


def cube_index(rank):
    return rank - 1


def flip_bit(index, bit):
    return index ^ (1 << bit)


def get_hypercube_neighbors(rank, dimension):
    # Getting the neighbors of a worker in the hypercube topology.
    # Order is by increasing bit, which is the order exchange rounds run in.
    index = cube_index(rank)
    neighbors = []
    for bit in range(dimension):
        neighbors.append(flip_bit(index, bit) + 1)
    return neighbors


def in_cube(rank, dimension):
    return 1 <= rank <= cube_size(dimension)

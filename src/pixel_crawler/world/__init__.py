"""Static floor model: cell vocabulary, geometry, grids, rooms and reachability."""

from dkmeans.context import KMeansContext
from dkmeans.driver import KMeansDriver, KMeansResult, DriverState
from dkmeans.errors import (KMeansError, InvalidArgument, MalformedInput,
                            DegenerateCluster, RoundFailure)
from dkmeans.kmeans import seed_centroids, assign, aggregate, check_threshold
from dkmeans.point import Aggregate, Centroid
from dkmeans.store import CentroidStore, FileCentroidStore

__version__ = '0.1.0'

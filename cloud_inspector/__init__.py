# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Cloud Resource Inspector.

Normalized inventory of resources collected from heterogeneous sources,
with filtering, relationship graphs and drift detection between snapshots.
"""

__version__ = "0.1.0"

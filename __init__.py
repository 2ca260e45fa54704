"""
sprint-forest

Random Forest training for classification and regression. Trees are grown
without pruning on per-feature sorted attribute tables that are split in a
single order-preserving pass per node, following the SPRINT algorithm
(Shafer et al.) and Breiman's Random Forest.
"""

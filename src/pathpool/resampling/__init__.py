"""Resampling of the pooled importance sampling population.

A resampler takes the importance weights of the pooled draws of all
paths and selects a fixed number of them, with replacement, with
probability proportional to their weights. The selected draws are the
final output of a multi-path run.

"""

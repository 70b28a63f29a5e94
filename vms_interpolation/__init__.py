"""Interpolation of sparse VMS position reports into densified vessel tracks.

The package pairs each ping with its temporal successor, samples a straight
line or cubic Hermite spline between each accepted pair, and offers a
sequential and a per-vessel batch driver that yield the same segments.
"""

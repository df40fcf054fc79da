import random


class ExponentialBackOff(object):
    """Randomized exponential delays, without a limit on the number of attempts."""

    def __init__(self, initial_interval=0.5, multiplier=1.5, randomization_factor=0.5,
                 max_interval=60):
        self.initial_interval = initial_interval
        self.multiplier = multiplier
        self.randomization_factor = randomization_factor
        self.max_interval = max_interval
        self.reset()

    def reset(self):
        self.current_interval = self.initial_interval

    def next_delay(self):
        delta = self.randomization_factor * self.current_interval
        delay = random.uniform(self.current_interval - delta, self.current_interval + delta)
        self.current_interval = min(self.current_interval * self.multiplier, self.max_interval)
        return delay

import math
from typing import Tuple


class SolowModel:
    """Cobb-Douglas economy used to settle each round.

    Output is ``Y = K ** alpha``; capital evolves as
    ``K' = (1 - delta) * K + I``. Instances hold only constants, so
    ``advance`` is a pure function of its arguments.
    """

    def __init__(self, initial_capital=100.0, alpha=0.3, depreciation_rate=0.1,
                 cap_investment_at_output=True):
        self.initial_capital = float(initial_capital)
        self.alpha = float(alpha)
        self.depreciation_rate = float(depreciation_rate)
        self.cap_investment_at_output = cap_investment_at_output

    @classmethod
    def from_config(cls, config) -> 'SolowModel':
        return cls(
            initial_capital=config.get('INITIAL_CAPITAL', 100),
            alpha=config.get('ALPHA', 0.3),
            depreciation_rate=config.get('DEPRECIATION_RATE', 0.1),
        )

    def output_for(self, capital: float) -> float:
        return math.pow(capital, self.alpha)

    def initial_state(self) -> Tuple[float, float]:
        return self.initial_capital, self.output_for(self.initial_capital)

    def clamp_investment(self, investment: float, output: float) -> float:
        """Investment can't be negative and can't exceed current output."""
        if investment < 0:
            return 0.0
        if self.cap_investment_at_output and investment > output:
            return output
        return investment

    def advance(self, capital: float, output: float, investment: float) -> Tuple[float, float]:
        new_capital = (1 - self.depreciation_rate) * capital + investment
        return new_capital, self.output_for(new_capital)

    def constants(self):
        initial_capital, initial_output = self.initial_state()
        return {
            'initialCapital': initial_capital,
            'initialOutput': initial_output,
            'alpha': self.alpha,
            'depreciationRate': self.depreciation_rate,
        }


def parse_investment(value) -> float:
    """Coerce a wire value to a finite float, or raise ValueError."""
    if isinstance(value, bool) or value is None:
        raise ValueError('investment must be a number')
    if isinstance(value, str):
        value = value.strip()
    try:
        number = float(value)
    except OverflowError as e:
        raise ValueError('investment is out of range') from e
    if math.isnan(number) or math.isinf(number):
        raise ValueError('investment must be finite')
    return number

from decimal import Decimal, InvalidOperation

import click


class MinInt(click.ParamType):
    name = "minint"

    def __init__(self, min_value):
        self.min_value = min_value

    def convert(self, value, param, ctx):
        if isinstance(value, int):
            ivalue = value
        else:
            try:
                ivalue = int(value)
            except ValueError:
                self.fail(f"{value} is not a valid integer", param, ctx)
        if ivalue < self.min_value:
            self.fail(
                f"{value} is less than the minimum allowed value of {self.min_value}", param, ctx
            )
        return ivalue


class GweiAmount(click.ParamType):
    """A non-negative amount of gwei, kept as a Decimal for exact wei conversion."""

    name = "gwei"

    def convert(self, value, param, ctx):
        if isinstance(value, Decimal):
            return value
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            self.fail(f"{value} is not a valid gwei amount", param, ctx)
        if not amount.is_finite() or amount < 0:
            self.fail(f"{value} is not a valid gwei amount", param, ctx)
        return amount

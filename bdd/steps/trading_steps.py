"""
Trading Step Definitions

Step implementations for buy, sell and valuation scenarios, driven through
the HTTP API.
"""

from decimal import Decimal

from behave import given, when, then

PASSWORD = "Password123"


def _auth(context, username):
    return {"Authorization": f"Bearer {context.tokens[username]}"}


def _holding(context, username, symbol):
    response = context.client.get("/portfolio/all", headers=_auth(context, username))
    assert response.status_code == 200, response.get_json()
    for holding in response.get_json()["holdings"]:
        if holding["symbol"] == symbol:
            return holding
    return None


@given('a registered user "{username}"')
def step_registered_user(context, username):
    response = context.client.post(
        "/users/register",
        json={
            "username": username,
            "email": f"{username}@example.com",
            "fullname": username.title(),
            "password": PASSWORD,
        },
    )
    assert response.status_code == 200, response.get_json()

    login = context.client.post("/users/login", json={"username": username, "password": PASSWORD})
    context.tokens[username] = login.get_json()["token"]


@given('the market price of "{symbol}" is {price}')
@when('the market price of "{symbol}" changes to {price}')
@given('the market price of "{symbol}" changes to {price}')
def step_market_price(context, symbol, price):
    if price == "unavailable":
        context.quotes.prices.pop(symbol, None)
    else:
        context.quotes.prices[symbol] = Decimal(price)


@when('"{username}" buys {quantity} shares of "{symbol}"')
def step_buy(context, username, quantity, symbol):
    context.response = context.client.post(
        "/portfolio/buy",
        json={"symbol": symbol, "quantity": quantity},
        headers=_auth(context, username),
    )


@given('"{username}" has bought {quantity} shares of "{symbol}"')
def step_has_bought(context, username, quantity, symbol):
    step_buy(context, username, quantity, symbol)
    assert context.response.status_code == 200, context.response.get_json()


@when('"{username}" sells {quantity} shares of "{symbol}"')
def step_sell(context, username, quantity, symbol):
    context.response = context.client.post(
        "/portfolio/sell",
        json={"symbol": symbol, "quantity": quantity},
        headers=_auth(context, username),
    )


@when('"{username}" views the portfolio')
def step_view(context, username):
    context.response = context.client.get("/portfolio/all", headers=_auth(context, username))


@then("the trade succeeds")
def step_trade_succeeds(context):
    assert context.response.status_code == 200, context.response.get_json()
    assert context.response.get_json()["ok"] is True


@then("the trade is rejected with status {status:d}")
def step_trade_rejected(context, status):
    assert context.response.status_code == status, context.response.get_json()


@then("the realized profit is {amount}")
def step_realized(context, amount):
    assert Decimal(str(context.response.get_json()["realizedPnl"])) == Decimal(amount)


@then('"{username}" holds {quantity} shares of "{symbol}" at an average price of {price}')
def step_holds(context, username, quantity, symbol, price):
    holding = _holding(context, username, symbol)
    assert holding is not None, f"{username} has no {symbol} holding"
    assert Decimal(str(holding["quantity"])) == Decimal(quantity)
    assert Decimal(str(holding["buyPrice"])) == Decimal(price)


@then('"{username}" has no holding in "{symbol}"')
def step_no_holding(context, username, symbol):
    assert _holding(context, username, symbol) is None


@then("the portfolio totals show {invested} invested and {current} current")
def step_totals(context, invested, current):
    assert context.response.status_code == 200
    totals = context.response.get_json()["totals"]
    assert Decimal(str(totals["totalInvested"])) == Decimal(invested)
    assert Decimal(str(totals["totalCurrent"])) == Decimal(current)

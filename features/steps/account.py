from behave import *

from aptos_bridge.account import Account
from aptos_bridge.account_address import AccountAddress
from aptos_bridge.asymmetric_crypto import InvalidKeyMaterial

# Use regular expressions
use_step_matcher("re")


@when("I derive an account from the seed")
def when_derive_account(context):
    try:
        context.output = Account.from_seed(context.input)
    except InvalidKeyMaterial as e:
        context.output = e


@then("deriving the same seed again should give the same address")
def then_same_address(context):
    assert Account.from_seed(context.input).address() == context.output.address()


@then("the address should be the hash of its public key")
def then_address_from_key(context):
    account = context.output
    assert account.address() == AccountAddress.from_key(account.public_key())
    assert account.auth_key() == str(account.address())
    assert len(str(account.address())) == 66


@then("I should fail to derive the account")
def then_fail_derive(context):
    assert isinstance(context.output, InvalidKeyMaterial)

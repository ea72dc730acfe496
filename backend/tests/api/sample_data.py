"""Sample identifiers shared by API tests."""

# Valid CPFs (check digits verified)
VALID_CPF = "52998224725"
OTHER_CPF = "11144477735"

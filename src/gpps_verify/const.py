ERRORS = {
  "E_ENVELOPE_JSON": "Signed action JSON invalid",
  "E_ENVELOPE_LAYOUT": "Signed action missing action, signer or signature",
  "E_ACTION_INVALID": "Action fields invalid",
  "E_SIG_INVALID": "Action signature invalid",
  "E_OWNER_MISMATCH": "Signer is not the owner of the target scope",
}

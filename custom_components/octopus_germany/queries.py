"""GraphQL documents sent to the Kraken API."""

LOGIN_MUTATION = """
mutation krakenTokenAuthentication($email: String!, $password: String!) {
  obtainKrakenToken(input: { email: $email, password: $password }) {
    token
    payload
  }
}
"""

ACCOUNT_DISCOVERY_QUERY = """
query {
  viewer {
    accounts {
      number
      ledgers {
        balance
        ledgerType
      }
    }
  }
}
"""

_DISPATCH_FIELDS = """
    delta
    deltaKwh
    end
    endDt
    meta {
      location
      source
    }
    start
    startDt
"""

_DEVICE_FIELDS = """
    status {
      current
      currentState
      isSuspended
    }
    provider
    preferences {
      mode
      schedules {
        dayOfWeek
        max
        min
        time
      }
      targetType
      unit
    }
    name
    integrationDeviceId
    id
    deviceType
    alerts {
      message
      publishedAt
    }
    ... on SmartFlexVehicle {
      vehicleVariant {
        model
        batterySize
      }
    }
"""

_ACCOUNT_FIELDS = """
    id
    ledgers {
      balance
      ledgerType
    }
    allProperties {
      id
      electricityMalos {
        agreements {
          product {
            code
            description
            fullName
          }
          unitRateGrossRateInformation {
            grossRate
          }
          unitRateInformation {
            ... on SimpleProductUnitRateInformation {
              __typename
              grossRateInformation {
                date
                grossRate
                rateValidToDate
                vatRate
              }
              latestGrossUnitRateCentsPerKwh
              netUnitRateCentsPerKwh
            }
            ... on TimeOfUseProductUnitRateInformation {
              __typename
              rates {
                grossRateInformation {
                  date
                  grossRate
                  rateValidToDate
                  vatRate
                }
                latestGrossUnitRateCentsPerKwh
                netUnitRateCentsPerKwh
                timeslotActivationRules {
                  activeFromTime
                  activeToTime
                }
                timeslotName
              }
            }
          }
          validFrom
          validTo
        }
        maloNumber
        meloNumber
        meter {
          id
          meterType
          number
          shouldReceiveSmartMeterData
          submitMeterReadingUrl
        }
        referenceConsumption
      }
    }
"""

COMPREHENSIVE_QUERY = f"""
query ComprehensiveDataQuery($accountNumber: String!) {{
  account(accountNumber: $accountNumber) {{{_ACCOUNT_FIELDS}  }}
  completedDispatches(accountNumber: $accountNumber) {{{_DISPATCH_FIELDS}  }}
  devices(accountNumber: $accountNumber) {{{_DEVICE_FIELDS}  }}
  plannedDispatches(accountNumber: $accountNumber) {{{_DISPATCH_FIELDS}  }}
}}
"""

DEVICES_QUERY = f"""
query DevicesQuery($accountNumber: String!) {{
  devices(accountNumber: $accountNumber) {{{_DEVICE_FIELDS}  }}
}}
"""

DISPATCHES_QUERY = f"""
query DispatchesQuery($accountNumber: String!) {{
  plannedDispatches(accountNumber: $accountNumber) {{{_DISPATCH_FIELDS}  }}
  completedDispatches(accountNumber: $accountNumber) {{{_DISPATCH_FIELDS}  }}
}}
"""

CHANGE_DEVICE_SUSPENSION_MUTATION = """
mutation ChangeDeviceSuspension($deviceId: ID = "", $action: SmartControlAction!) {
  updateDeviceSmartControl(input: {deviceId: $deviceId, action: $action}) {
    id
  }
}
"""

# Values are validated by the caller before interpolation.
SET_VEHICLE_CHARGE_PREFERENCES_TEMPLATE = """
mutation setVehicleChargePreferences($accountNumber: String = "") {{
  setVehicleChargePreferences(
    input: {{accountNumber: $accountNumber, weekdayTargetSoc: {weekday_soc}, weekendTargetSoc: {weekend_soc}, weekdayTargetTime: "{weekday_time}", weekendTargetTime: "{weekend_time}"}}
  ) {{
    krakenflexDevice {{
      provider
    }}
  }}
}}
"""
